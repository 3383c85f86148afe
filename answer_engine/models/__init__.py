"""Pydantic models."""
from answer_engine.models.answer_key import (
    AnswerKeyEntry,
    ResolutionSource,
    ResolvedAnswerKey,
    SubmissionResult,
    TestDescriptor,
)
from answer_engine.models.sessions import (
    AnswerKeyEventPayload,
    AnswerSelectRequest,
    AnswerSelectResponse,
    QuestionCountRequest,
    SessionSnapshot,
    SessionStartRequest,
    SubmitRequest,
)

__all__ = [
    "AnswerKeyEntry",
    "AnswerKeyEventPayload",
    "AnswerSelectRequest",
    "AnswerSelectResponse",
    "QuestionCountRequest",
    "ResolutionSource",
    "ResolvedAnswerKey",
    "SessionSnapshot",
    "SessionStartRequest",
    "SubmissionResult",
    "SubmitRequest",
    "TestDescriptor",
]
