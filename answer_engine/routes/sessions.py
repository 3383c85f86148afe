"""Answer session endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from answer_engine.engine.session import TestSession
from answer_engine.engine.submission import SubmissionState, SubmitOutcome, SubmitTrigger
from answer_engine.models import (
    AnswerSelectRequest,
    AnswerSelectResponse,
    QuestionCountRequest,
    SessionSnapshot,
    SessionStartRequest,
    SubmitRequest,
    TestDescriptor,
)
from answer_engine.services.session_service import SessionRegistry, get_registry
from answer_engine.utils import validate_id

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

Registry = Annotated[SessionRegistry, Depends(get_registry)]


def _require_session(registry: SessionRegistry, test_id: str) -> TestSession:
    test_id = validate_id("testId", test_id)
    session = registry.get(test_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("", response_model=SessionSnapshot)
def start_session(payload: SessionStartRequest, registry: Registry) -> SessionSnapshot:
    """Start (or restart) the answer session for a test."""
    test_id = validate_id("testId", payload.testId)
    descriptor = TestDescriptor(
        id=test_id,
        title=payload.title,
        description=payload.description,
        duration_minutes=payload.durationMinutes,
        document_url=payload.documentUrl,
    )
    session = registry.start(descriptor)
    return session.snapshot()


@router.get("/{test_id}", response_model=SessionSnapshot)
def get_session(test_id: str, registry: Registry) -> SessionSnapshot:
    """Get the current render state of a session."""
    return _require_session(registry, test_id).snapshot()


@router.put("/{test_id}/answers/{question}", response_model=AnswerSelectResponse)
def select_answer(
    test_id: str,
    question: int,
    payload: AnswerSelectRequest,
    registry: Registry,
) -> dict[str, object]:
    """Record an answer. Options outside the current option set are ignored."""
    session = _require_session(registry, test_id)
    accepted = session.select_answer(question, payload.option)
    return {"accepted": accepted, "session": session.snapshot()}


@router.post("/{test_id}/question-count", response_model=SessionSnapshot)
def confirm_question_count(
    test_id: str,
    payload: QuestionCountRequest,
    registry: Registry,
) -> SessionSnapshot:
    """Manually confirm how many questions the test has."""
    session = _require_session(registry, test_id)
    try:
        session.confirm_question_count(payload.count)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return session.snapshot()


@router.post("/{test_id}/submit")
def submit_session(
    test_id: str,
    payload: SubmitRequest,
    registry: Registry,
) -> dict[str, object]:
    """Submit the answer sheet for grading."""
    session = _require_session(registry, test_id)

    snapshot = session.snapshot()
    in_progress = snapshot.submissionState == SubmissionState.IN_PROGRESS.value
    if in_progress and snapshot.answeredCount == 0:
        raise HTTPException(status_code=400, detail="Answer at least one question before submitting")
    if (
        in_progress
        and snapshot.answeredCount < snapshot.questionCount
        and not payload.confirmIncomplete
    ):
        raise HTTPException(
            status_code=409,
            detail=(
                f"Only {snapshot.answeredCount} of {snapshot.questionCount} questions answered; "
                "resend with confirmIncomplete to submit anyway"
            ),
        )

    outcome = session.submit(SubmitTrigger.MANUAL)
    if outcome is SubmitOutcome.EMPTY:
        raise HTTPException(status_code=400, detail="Answer at least one question before submitting")
    return {"outcome": outcome.value, "session": session.snapshot()}


@router.delete("/{test_id}")
def end_session(
    test_id: str,
    registry: Registry,
    discard: bool = Query(False),
) -> dict[str, str]:
    """End a session; ``discard`` also drops the saved answers."""
    test_id = validate_id("testId", test_id)
    if not registry.end(test_id, discard=discard):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "ended"}
