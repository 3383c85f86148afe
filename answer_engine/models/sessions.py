"""Session-related Pydantic models."""
from pydantic import BaseModel, Field

from answer_engine.models.answer_key import SubmissionResult


class SessionStartRequest(BaseModel):
    """Model for starting an answer session."""

    testId: str = Field(..., min_length=1)
    title: str = ""
    description: str | None = None
    durationMinutes: int | None = Field(default=None, ge=0)
    documentUrl: str | None = None


class AnswerSelectRequest(BaseModel):
    """Model for selecting an option on the answer sheet."""

    option: str = Field(..., min_length=1)


class QuestionCountRequest(BaseModel):
    """Model for manually confirming the question count."""

    count: int


class SubmitRequest(BaseModel):
    """Model for a manual submission."""

    confirmIncomplete: bool = False


class AnswerKeyEventPayload(BaseModel):
    """Change notification for an answer-key row."""

    type: str = Field(..., pattern="^(INSERT|UPDATE|DELETE)$")
    record: dict[str, object] | None = None
    old_record: dict[str, object] | None = None


class SessionSnapshot(BaseModel):
    """Current render state of an answer session."""

    testId: str
    questionCount: int
    optionSet: list[str]
    answers: dict[int, str]
    answeredCount: int
    progress: float
    remainingSeconds: int | None = None
    remainingDisplay: str | None = None
    timeWarning: bool = False
    countdownState: str
    submissionState: str
    lastError: str | None = None
    result: SubmissionResult | None = None
    active: bool = True


class AnswerSelectResponse(BaseModel):
    """Model for an answer selection response."""

    accepted: bool
    session: SessionSnapshot
