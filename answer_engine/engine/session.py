"""
A learner's answer session for one test.

``TestSession`` wires the resolver, answer store, countdown, realtime client
and submission controller together. Public methods are marshalled onto the
dispatcher so every mutation happens on one logical thread.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from answer_engine.config import DEFAULT_QUESTION_COUNT, TIME_WARNING_SECONDS
from answer_engine.engine.answer_store import PersistedAnswerStore
from answer_engine.engine.countdown import CountdownScheduler, Ticker
from answer_engine.engine.dispatcher import EventDispatcher
from answer_engine.engine.realtime import ChangeFeed, RealtimeSyncClient
from answer_engine.engine.resolver import AnswerKeyResolver, AnswerKeySource, ResyncTrigger
from answer_engine.engine.submission import (
    CompletionCallback,
    ConfirmationPort,
    NotificationPort,
    SubmissionController,
    SubmissionGateway,
    SubmissionState,
    SubmitOutcome,
    SubmitTrigger,
)
from answer_engine.models.answer_key import ResolvedAnswerKey, TestDescriptor
from answer_engine.models.sessions import SessionSnapshot
from answer_engine.utils.time_utils import format_remaining

if TYPE_CHECKING:
    from answer_engine.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]


class TestSession:
    """Answer-capture session for a single test attempt."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        descriptor: TestDescriptor,
        *,
        source: AnswerKeySource,
        storage: "KeyValueStorage",
        gateway: SubmissionGateway,
        dispatcher: EventDispatcher | None = None,
        resync: ResyncTrigger | None = None,
        change_feed: ChangeFeed | None = None,
        ticker: Ticker | None = None,
        confirmation: ConfirmationPort | None = None,
        notifier: NotificationPort | None = None,
        on_complete: CompletionCallback | None = None,
        on_update: SnapshotListener | None = None,
        default_question_count: int = DEFAULT_QUESTION_COUNT,
    ) -> None:
        self.descriptor = descriptor
        self._dispatcher = dispatcher or EventDispatcher()
        self._on_update = on_update
        self._on_complete = on_complete
        self._alive = False
        self._started = False
        self._resolved: ResolvedAnswerKey | None = None
        self._remove_listener: Callable[[], None] | None = None

        self._resolver = AnswerKeyResolver(
            source, storage, resync=resync, default_question_count=default_question_count
        )
        self._store = PersistedAnswerStore(storage)
        self._countdown = CountdownScheduler(self._on_timer_expired, ticker=ticker)
        self._realtime = (
            RealtimeSyncClient(change_feed, self._resolver, self._dispatcher)
            if change_feed is not None
            else None
        )
        self._submission = SubmissionController(
            descriptor.id,
            self._store,
            gateway,
            self._dispatcher,
            question_count=lambda: self.question_count,
            confirmation=confirmation,
            notifier=notifier,
            on_complete=self._on_submission_complete,
            is_alive=lambda: self._alive,
        )

    @property
    def test_id(self) -> str:
        return self.descriptor.id

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def question_count(self) -> int:
        return self._resolved.question_count if self._resolved else 0

    # -- public API (marshalled onto the dispatcher) --------------------------

    def start(self) -> None:
        self._dispatcher.call(self._start)

    def select_answer(self, question: int, option: str) -> bool:
        return self._dispatcher.call(self._select_answer, question, option)

    def submit(self, trigger: SubmitTrigger = SubmitTrigger.MANUAL) -> SubmitOutcome:
        return self._dispatcher.call(self._submit, trigger)

    def confirm_question_count(self, count: int) -> ResolvedAnswerKey:
        return self._dispatcher.call(self._confirm_question_count, count)

    def snapshot(self) -> SessionSnapshot:
        return self._dispatcher.call(self._snapshot)

    def end(self, discard: bool = False) -> None:
        self._dispatcher.call(self._end, discard)

    # -- dispatcher-thread handlers ------------------------------------------

    def _start(self) -> None:
        if self._started:
            return
        self._started = True
        self._alive = True
        self._remove_listener = self._resolver.add_listener(self._on_resolved)
        self._countdown.start(self.descriptor.duration_minutes)
        if self._realtime is not None:
            self._realtime.start(self.test_id)
        self._resolver.resolve_in_background(self.test_id, self._dispatcher, lambda: self._alive)
        logger.info(f"Session started for test {self.test_id}")

    def _on_resolved(self, test_id: str, resolved: ResolvedAnswerKey) -> None:
        if not self._alive or test_id != self.test_id:
            return

        first = self._resolved is None
        self._resolved = resolved
        if first:
            self._store.load(test_id)
        self._store.set_question_count(resolved.question_count)
        self._store.reconcile(resolved.option_set)
        self._notify_update()

    def _select_answer(self, question: int, option: str) -> bool:
        if not self._alive or self._submission.state is not SubmissionState.IN_PROGRESS:
            return False
        accepted = self._store.set(question, option)
        if accepted:
            self._notify_update()
        return accepted

    def _submit(self, trigger: SubmitTrigger) -> SubmitOutcome:
        if not self._alive:
            return SubmitOutcome.DUPLICATE
        return self._submission.submit(trigger)

    def _on_timer_expired(self) -> None:
        if not self._alive:
            return
        logger.info(f"Time is up for test {self.test_id}; submitting automatically")
        self._submission.submit(SubmitTrigger.TIMER_EXPIRY)
        self._notify_update()

    def _on_submission_complete(self, attempt_id: str, score: float, passed: bool) -> None:
        # Nothing left to count down or re-resolve once graded.
        self._countdown.stop()
        if self._realtime is not None:
            self._realtime.stop()
        if self._on_complete is not None:
            self._on_complete(attempt_id, score, passed)

    def _confirm_question_count(self, count: int) -> ResolvedAnswerKey:
        return self._resolver.confirm_question_count(self.test_id, count, self._resolved)

    def _snapshot(self) -> SessionSnapshot:
        answers = self._store.answers
        question_count = self.question_count
        remaining = self._countdown.remaining_seconds
        return SessionSnapshot(
            testId=self.test_id,
            questionCount=question_count,
            optionSet=list(self._store.option_set),
            answers=answers,
            answeredCount=len(answers),
            progress=round(len(answers) / question_count * 100, 2) if question_count else 0.0,
            remainingSeconds=remaining,
            remainingDisplay=format_remaining(remaining),
            timeWarning=remaining is not None and remaining < TIME_WARNING_SECONDS,
            countdownState=self._countdown.state.value,
            submissionState=self._submission.state.value,
            lastError=self._submission.last_error,
            result=self._submission.result,
            active=self._alive,
        )

    def _end(self, discard: bool) -> None:
        if not self._alive:
            return
        self._alive = False
        self._countdown.stop()
        if self._realtime is not None:
            self._realtime.stop()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        if discard:
            self._store.clear()
        logger.info(f"Session ended for test {self.test_id} (discard={discard})")

    def _notify_update(self) -> None:
        if self._on_update is not None:
            self._on_update(self._snapshot())
