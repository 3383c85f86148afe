"""Answer key, test descriptor and submission result models."""
from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TestDescriptor(BaseModel):
    """Test metadata supplied by the hosting view. Immutable for a session."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str | None = None
    duration_minutes: int | None = Field(default=None, ge=0)
    document_url: str | None = None


class AnswerKeyEntry(BaseModel):
    """One row of the externally maintained answer key."""

    model_config = ConfigDict(frozen=True)

    question_number: int = Field(..., gt=0)
    correct_answer: str | None = None


class ResolutionSource(str, enum.Enum):
    """Where a resolved question count came from."""

    ANSWER_KEY = "answer_key"
    CACHED_COUNT = "cached_count"
    DEFAULT = "default"


class ResolvedAnswerKey(BaseModel):
    """Question count and selectable options for a test."""

    model_config = ConfigDict(frozen=True)

    question_count: int
    option_set: tuple[str, ...]
    source: ResolutionSource = ResolutionSource.ANSWER_KEY


class SubmissionResult(BaseModel):
    """Outcome of a graded attempt. Created once per successful submission."""

    model_config = ConfigDict(frozen=True)

    attempt_id: str
    score: float
    passed: bool
    correct_count: int | None = None
    total_questions: int | None = None
    attempt_number: int | None = None
    attempts_remaining: int | None = None

    @classmethod
    def from_attempt_payload(cls, attempt: dict[str, Any]) -> "SubmissionResult":
        """Build a result from the grading endpoint's ``attempt`` object."""
        return cls(
            attempt_id=str(attempt["id"]),
            score=float(attempt["score"]),
            passed=bool(attempt["passed"]),
            correct_count=attempt.get("correctCount"),
            total_questions=attempt.get("totalQuestions"),
            attempt_number=attempt.get("attemptNumber"),
            attempts_remaining=attempt.get("attemptsRemaining"),
        )
