"""
Terminal transition of an answer session: confirm, post once, report.

States are ``in_progress -> submitting -> submitted``; a failed post returns
to ``in_progress`` with every answer kept so the learner can retry.
"""
from __future__ import annotations

import enum
import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING, Callable, Protocol

from answer_engine.models.answer_key import SubmissionResult

if TYPE_CHECKING:
    from answer_engine.engine.answer_store import PersistedAnswerStore
    from answer_engine.engine.dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

DEFAULT_SUBMIT_ERROR = "Failed to submit test"

CompletionCallback = Callable[[str, float, bool], None]


class SubmissionState(str, enum.Enum):
    """Status of an answer session's submission."""

    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SubmitTrigger(str, enum.Enum):
    """What asked for the submission."""

    MANUAL = "manual"
    TIMER_EXPIRY = "timer_expiry"


class SubmitOutcome(str, enum.Enum):
    """Immediate result of ``SubmissionController.submit``."""

    STARTED = "started"
    CONFIRMING = "confirming"
    DUPLICATE = "duplicate"
    EMPTY = "empty"


class SubmissionError(Exception):
    """Grading endpoint refused or failed the submission."""


class SubmissionGateway(Protocol):
    def submit_answers(self, test_id: str, answers: dict[int, str]) -> SubmissionResult: ...


class ConfirmationPort(Protocol):
    def confirm_incomplete(self, answered: int, total: int) -> "Future[bool]": ...


class NotificationPort(Protocol):
    def notify_error(self, message: str) -> None: ...


class SubmissionController:
    """Guards and performs the single submission of one session."""

    def __init__(
        self,
        test_id: str,
        store: "PersistedAnswerStore",
        gateway: SubmissionGateway,
        dispatcher: "EventDispatcher",
        question_count: Callable[[], int],
        confirmation: ConfirmationPort | None = None,
        notifier: NotificationPort | None = None,
        on_complete: CompletionCallback | None = None,
        is_alive: Callable[[], bool] = lambda: True,
    ) -> None:
        self._test_id = test_id
        self._store = store
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._question_count = question_count
        self._confirmation = confirmation
        self._notifier = notifier
        self._on_complete = on_complete
        self._is_alive = is_alive

        self._state = SubmissionState.IN_PROGRESS
        self._confirming = False
        self._last_error: str | None = None
        self._result: SubmissionResult | None = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def result(self) -> SubmissionResult | None:
        return self._result

    def submit(self, trigger: SubmitTrigger) -> SubmitOutcome:
        if self._state is not SubmissionState.IN_PROGRESS:
            logger.debug("Submission already %s for test %s", self._state.value, self._test_id)
            return SubmitOutcome.DUPLICATE

        if trigger is SubmitTrigger.TIMER_EXPIRY:
            self._begin(trigger)
            return SubmitOutcome.STARTED

        if self._confirming:
            return SubmitOutcome.DUPLICATE

        answered = self._store.answered_count
        if answered == 0:
            logger.debug("Manual submission with no answers ignored for test %s", self._test_id)
            return SubmitOutcome.EMPTY

        total = self._question_count()
        if answered < total:
            if self._confirmation is None:
                logger.info(
                    f"Incomplete submission for test {self._test_id} needs confirmation; "
                    "no confirmation port configured"
                )
                return SubmitOutcome.CONFIRMING
            self._confirming = True
            pending = self._confirmation.confirm_incomplete(answered, total)
            pending.add_done_callback(
                lambda done: self._dispatcher.post(self._on_confirmation, done)
            )
            return SubmitOutcome.CONFIRMING

        self._begin(trigger)
        return SubmitOutcome.STARTED

    def _on_confirmation(self, done: "Future[bool]") -> None:
        self._confirming = False
        if not self._is_alive() or self._state is not SubmissionState.IN_PROGRESS:
            return
        try:
            confirmed = bool(done.result())
        except Exception as exc:
            logger.warning(f"Confirmation failed for test {self._test_id}: {exc}")
            confirmed = False
        if not confirmed:
            logger.info(f"Learner declined incomplete submission for test {self._test_id}")
            return
        self._begin(SubmitTrigger.MANUAL)

    def _begin(self, trigger: SubmitTrigger) -> None:
        self._state = SubmissionState.SUBMITTING
        self._last_error = None
        answers = self._store.answers
        logger.info(
            f"Submitting {len(answers)} answer(s) for test {self._test_id} ({trigger.value})"
        )
        self._dispatcher.submit_background(
            lambda: self._gateway.submit_answers(self._test_id, answers),
            self._on_submitted,
        )

    def _on_submitted(self, done: "Future[SubmissionResult]") -> None:
        if not self._is_alive():
            logger.info(f"Ignoring submission result for closed session of test {self._test_id}")
            return

        try:
            result = done.result()
        except Exception as exc:
            message = str(exc) or DEFAULT_SUBMIT_ERROR
            logger.error(f"Submission failed for test {self._test_id}: {message}")
            self._state = SubmissionState.IN_PROGRESS
            self._last_error = message
            if self._notifier is not None:
                self._notifier.notify_error(message)
            return

        self._state = SubmissionState.SUBMITTED
        self._result = result
        self._store.clear()
        logger.info(
            f"Test {self._test_id} submitted: attempt {result.attempt_id}, "
            f"score {result.score}, passed={result.passed}"
        )
        if self._on_complete is not None:
            self._on_complete(result.attempt_id, result.score, result.passed)
