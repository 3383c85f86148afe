"""
Answer-key change notifications.

A ``ChangeFeed`` delivers insert/update/delete events for one test's answer
key. ``RealtimeSyncClient`` turns each event into a fresh resolution.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol

if TYPE_CHECKING:
    from answer_engine.engine.dispatcher import EventDispatcher
    from answer_engine.engine.resolver import AnswerKeyResolver, AnswerKeySource

logger = logging.getLogger(__name__)

CHANGE_TYPES = ("INSERT", "UPDATE", "DELETE")


@dataclass(frozen=True)
class AnswerKeyChange:
    test_id: str
    change_type: str
    record: dict[str, Any] | None = field(default=None, compare=False)


ChangeHandler = Callable[[AnswerKeyChange], None]
Unsubscribe = Callable[[], None]


class ChangeFeed(Protocol):
    def subscribe(self, test_id: str, handler: ChangeHandler) -> Unsubscribe: ...


class LocalChangeFeed:
    """In-process publish/subscribe hub keyed by test id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._subscribers: dict[str, dict[int, ChangeHandler]] = {}

    def subscribe(self, test_id: str, handler: ChangeHandler) -> Unsubscribe:
        with self._lock:
            token = next(self._tokens)
            self._subscribers.setdefault(test_id, {})[token] = handler

        def _unsubscribe() -> None:
            with self._lock:
                handlers = self._subscribers.get(test_id)
                if handlers is None:
                    return
                handlers.pop(token, None)
                if not handlers:
                    del self._subscribers[test_id]

        return _unsubscribe

    def subscriber_count(self, test_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(test_id, {}))

    def publish(self, change: AnswerKeyChange) -> int:
        """Deliver ``change`` to every current subscriber; returns how many."""
        with self._lock:
            handlers = list(self._subscribers.get(change.test_id, {}).values())
        for handler in handlers:
            handler(change)
        return len(handlers)


class PollingChangeFeed:
    """
    Polls the answer key and reports an ``UPDATE`` whenever its rows change.

    For deployments where the data service cannot push webhooks.
    """

    def __init__(self, source: "AnswerKeySource", interval: float = 10.0) -> None:
        self._source = source
        self._interval = interval

    def _fingerprint(self, test_id: str) -> tuple[tuple[int, str | None], ...] | None:
        try:
            entries = self._source.fetch_answer_key(test_id)
        except Exception as exc:
            logger.debug("Answer key poll failed for test %s: %s", test_id, exc)
            return None
        return tuple(sorted((e.question_number, e.correct_answer) for e in entries))

    def subscribe(self, test_id: str, handler: ChangeHandler) -> Unsubscribe:
        stop_event = threading.Event()

        def _worker() -> None:
            last = self._fingerprint(test_id)
            while not stop_event.wait(self._interval):
                current = self._fingerprint(test_id)
                if current is None or current == last:
                    continue
                last = current
                if not stop_event.is_set():
                    handler(AnswerKeyChange(test_id=test_id, change_type="UPDATE"))

        thread = threading.Thread(
            target=_worker,
            name=f"answer_key_poll_{test_id}",
            daemon=True,
        )
        thread.start()
        return stop_event.set


class RealtimeSyncClient:
    """Re-resolves the answer key on every change notification for one test."""

    def __init__(
        self,
        feed: ChangeFeed,
        resolver: "AnswerKeyResolver",
        dispatcher: "EventDispatcher",
    ) -> None:
        self._feed = feed
        self._resolver = resolver
        self._dispatcher = dispatcher
        self._test_id: str | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._generation = 0

    @property
    def test_id(self) -> str | None:
        return self._test_id

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def start(self, test_id: str) -> None:
        """Subscribe for ``test_id``, tearing down any previous subscription."""
        if self._unsubscribe is not None and self._test_id == test_id:
            return
        self.stop()

        self._generation += 1
        generation = self._generation
        self._test_id = test_id

        def _handler(change: AnswerKeyChange) -> None:
            # May run on a feed thread; hop onto the dispatcher queue.
            self._dispatcher.post(self._on_change, generation, change)

        self._unsubscribe = self._feed.subscribe(test_id, _handler)
        logger.info(f"Subscribed to answer key changes for test {test_id}")

    def stop(self) -> None:
        """Tear down the subscription. Safe to call repeatedly."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        self._generation += 1
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        finally:
            logger.info(f"Unsubscribed from answer key changes for test {self._test_id}")

    def _is_current(self, generation: int) -> bool:
        return self._unsubscribe is not None and generation == self._generation

    def _on_change(self, generation: int, change: AnswerKeyChange) -> None:
        if not self._is_current(generation) or change.test_id != self._test_id:
            logger.debug("Ignoring answer key change after teardown: %s", change)
            return
        logger.info(f"Answer key {change.change_type} for test {change.test_id}; re-resolving")
        self._resolver.resolve_in_background(
            change.test_id,
            self._dispatcher,
            lambda: self._is_current(generation),
        )
