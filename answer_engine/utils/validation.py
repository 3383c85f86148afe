"""Validation utilities."""
from fastapi import HTTPException

from answer_engine.config import MAX_QUESTION_COUNT

# Storage keys are "test_question_count_<id>" in a 255-char column.
MAX_TEST_ID_LENGTH = 255 - len("test_question_count_")


def validate_id(name: str, value: str) -> str:
    """Validate a test id used in storage keys and remote URLs."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if len(cleaned) > MAX_TEST_ID_LENGTH:
        raise HTTPException(status_code=400, detail=f"{name} is too long")
    if cleaned in (".", "..") or any(ch in cleaned for ch in "/\\?#"):
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned


def validate_question_count(count: int) -> int:
    """Validate a manually confirmed question count."""
    if not isinstance(count, int) or isinstance(count, bool):
        raise ValueError("Question count must be an integer")
    if count < 1 or count > MAX_QUESTION_COUNT:
        raise ValueError(f"Question count must be between 1 and {MAX_QUESTION_COUNT}")
    return count
