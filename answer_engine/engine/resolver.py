"""
Answer-key resolution: question count and selectable options for a test.

The remote answer key is authoritative. When it is empty or unreachable the
resolver falls back to a manually confirmed question count cached in local
storage, and finally to a fixed default.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future
from functools import partial
from typing import TYPE_CHECKING, Callable, Protocol

from answer_engine.config import DEFAULT_QUESTION_COUNT
from answer_engine.engine.options import DEFAULT_OPTIONS, derive_option_set, normalize_answer
from answer_engine.models.answer_key import AnswerKeyEntry, ResolutionSource, ResolvedAnswerKey
from answer_engine.utils.validation import validate_question_count

if TYPE_CHECKING:
    from answer_engine.engine.dispatcher import EventDispatcher
    from answer_engine.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)

ResolutionListener = Callable[[str, ResolvedAnswerKey], None]


class AnswerKeySource(Protocol):
    def fetch_answer_key(self, test_id: str) -> list[AnswerKeyEntry]:
        """Return answer-key rows ordered by question number, descending."""


class ResyncTrigger(Protocol):
    def trigger_resync(self, test_id: str) -> None:
        """Ask the remote side to re-extract the answer key."""


def question_count_key(test_id: str) -> str:
    return f"test_question_count_{test_id}"


class AnswerKeyResolver:
    """Resolves ``{question_count, option_set}`` and publishes each result."""

    def __init__(
        self,
        source: AnswerKeySource,
        storage: "KeyValueStorage",
        resync: ResyncTrigger | None = None,
        default_question_count: int = DEFAULT_QUESTION_COUNT,
    ) -> None:
        self._source = source
        self._storage = storage
        self._resync = resync
        self._default_question_count = default_question_count
        self._listeners: list[ResolutionListener] = []
        self._requested = 0
        self._applied = 0

    def add_listener(self, listener: ResolutionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def compute(self, test_id: str) -> ResolvedAnswerKey:
        """Resolve without publishing. Never raises on remote failures."""
        if self._resync is not None:
            try:
                self._resync.trigger_resync(test_id)
            except Exception as exc:
                logger.warning(f"Answer key re-sync failed for test {test_id}: {exc}")

        try:
            entries = self._source.fetch_answer_key(test_id)
        except Exception as exc:
            logger.warning(f"Failed to load answer key for test {test_id}: {exc}")
            entries = []

        if entries:
            question_count = max(entry.question_number for entry in entries)
            option_set = derive_option_set(
                normalize_answer(entry.correct_answer) for entry in entries
            )
            logger.debug(
                "Resolved test %s from answer key: %d questions, options %s",
                test_id,
                question_count,
                ",".join(option_set),
            )
            return ResolvedAnswerKey(
                question_count=question_count,
                option_set=option_set,
                source=ResolutionSource.ANSWER_KEY,
            )

        cached = self.cached_question_count(test_id)
        if cached is not None:
            logger.info(f"No answer key for test {test_id}; using confirmed count {cached}")
            return ResolvedAnswerKey(
                question_count=cached,
                option_set=DEFAULT_OPTIONS,
                source=ResolutionSource.CACHED_COUNT,
            )

        logger.info(
            f"No answer key for test {test_id}; using default count {self._default_question_count}"
        )
        return ResolvedAnswerKey(
            question_count=self._default_question_count,
            option_set=DEFAULT_OPTIONS,
            source=ResolutionSource.DEFAULT,
        )

    def publish(self, test_id: str, resolved: ResolvedAnswerKey) -> None:
        for listener in list(self._listeners):
            listener(test_id, resolved)

    def resolve(self, test_id: str) -> ResolvedAnswerKey:
        """Resolve on the calling thread and publish the result."""
        resolved = self.compute(test_id)
        self.publish(test_id, resolved)
        return resolved

    def resolve_in_background(
        self,
        test_id: str,
        dispatcher: "EventDispatcher",
        is_current: Callable[[], bool],
    ) -> Future:
        """
        Resolve on the dispatcher's executor and publish on its queue.

        ``is_current`` is checked before publishing so results arriving after
        teardown are dropped. Requests are numbered; a result that finishes
        after a newer request's result has been applied is discarded.
        """
        self._requested += 1
        sequence = self._requested

        def _apply(future: Future) -> None:
            if not is_current():
                logger.debug("Dropping late answer key resolution for test %s", test_id)
                return
            if sequence < self._applied:
                logger.debug(
                    "Dropping out-of-order answer key resolution %d for test %s (latest %d)",
                    sequence,
                    test_id,
                    self._applied,
                )
                return
            self._applied = sequence
            self.publish(test_id, future.result())

        return dispatcher.submit_background(partial(self.compute, test_id), _apply)

    def cached_question_count(self, test_id: str) -> int | None:
        raw = self._storage.get(question_count_key(test_id))
        if raw is None:
            return None
        try:
            return validate_question_count(int(raw))
        except ValueError:
            logger.warning(f"Ignoring invalid cached question count for test {test_id}: {raw!r}")
            return None

    def confirm_question_count(
        self,
        test_id: str,
        count: int,
        current: ResolvedAnswerKey | None = None,
    ) -> ResolvedAnswerKey:
        """
        Persist a manually confirmed question count and publish it.

        Raises:
            ValueError: if ``count`` is outside the allowed range.
        """
        count = validate_question_count(count)
        self._storage.set(question_count_key(test_id), str(count))
        resolved = ResolvedAnswerKey(
            question_count=count,
            option_set=current.option_set if current else DEFAULT_OPTIONS,
            source=ResolutionSource.CACHED_COUNT,
        )
        self.publish(test_id, resolved)
        return resolved
