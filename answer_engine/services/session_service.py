"""Service layer for answer sessions hosted by the HTTP API."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable

from answer_engine.config import DEFAULT_QUESTION_COUNT, SYNC_POLL_INTERVAL_SECONDS
from answer_engine.engine.countdown import ThreadTicker, Ticker
from answer_engine.engine.dispatcher import EventDispatcher
from answer_engine.engine.realtime import ChangeFeed, LocalChangeFeed, PollingChangeFeed
from answer_engine.engine.resolver import AnswerKeySource, ResyncTrigger
from answer_engine.engine.session import TestSession
from answer_engine.engine.submission import SubmissionGateway
from answer_engine.models.answer_key import TestDescriptor
from answer_engine.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)


class AutoConfirmation:
    """Confirms every incomplete submission.

    Used where the caller already asked the learner (the HTTP API checks
    ``confirmIncomplete`` before submitting).
    """

    def confirm_incomplete(self, answered: int, total: int) -> "Future[bool]":
        future: Future = Future()
        future.set_result(True)
        return future


class LoggingNotifier:
    """Records learner-facing errors and writes them to the log."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify_error(self, message: str) -> None:
        self.messages.append(message)
        logger.warning(f"Learner notified: {message}")


class SessionRegistry:
    """Active sessions, one per test id."""

    def __init__(
        self,
        *,
        storage: KeyValueStorage,
        source: AnswerKeySource,
        gateway: SubmissionGateway,
        resync: ResyncTrigger | None = None,
        change_feed: ChangeFeed | None = None,
        dispatcher: EventDispatcher | None = None,
        ticker_factory: Callable[[EventDispatcher], Ticker | None] | None = None,
        default_question_count: int = DEFAULT_QUESTION_COUNT,
    ) -> None:
        self.storage = storage
        self.source = source
        self.gateway = gateway
        self.resync = resync
        self.change_feed = change_feed
        self.dispatcher = dispatcher or EventDispatcher()
        self.ticker_factory = ticker_factory or (lambda d: ThreadTicker(d.post))
        self.default_question_count = default_question_count
        self._sessions: dict[str, TestSession] = {}
        self._lock = threading.Lock()
        # Serializes replace-and-store so one test id never has two live sessions.
        self._start_lock = threading.Lock()

    def start(self, descriptor: TestDescriptor) -> TestSession:
        """
        Start a session, replacing any existing one for the same test.

        A completed session stays registered (its result is still readable)
        until it is replaced here or ended.
        """
        with self._start_lock:
            with self._lock:
                previous = self._sessions.pop(descriptor.id, None)
            if previous is not None:
                previous.end()

            session = self._build_session(descriptor)
            session.start()
            with self._lock:
                self._sessions[descriptor.id] = session
        return session

    def _build_session(self, descriptor: TestDescriptor) -> TestSession:
        return TestSession(
            descriptor,
            source=self.source,
            storage=self.storage,
            gateway=self.gateway,
            dispatcher=self.dispatcher,
            resync=self.resync,
            change_feed=self.change_feed,
            ticker=self.ticker_factory(self.dispatcher),
            confirmation=AutoConfirmation(),
            notifier=LoggingNotifier(),
            on_complete=self._log_completion,
            default_question_count=self.default_question_count,
        )

    def get(self, test_id: str) -> TestSession | None:
        with self._lock:
            return self._sessions.get(test_id)

    def end(self, test_id: str, discard: bool = False) -> bool:
        with self._lock:
            session = self._sessions.pop(test_id, None)
        if session is None:
            return False
        session.end(discard=discard)
        return True

    def shutdown(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.end()
        self.dispatcher.stop()

    @staticmethod
    def _log_completion(attempt_id: str, score: float, passed: bool) -> None:
        logger.info(f"Attempt {attempt_id} completed: score={score} passed={passed}")


_registry: SessionRegistry | None = None
_registry_lock = threading.Lock()
_change_hub = LocalChangeFeed()


def get_change_hub() -> LocalChangeFeed:
    """Webhook-fed change hub shared by the app."""
    return _change_hub


def build_registry() -> SessionRegistry:
    """Create a registry wired to the configured remote service and storage."""
    from answer_engine.services.data_service import RemoteDataClient
    from answer_engine.services.storage_service import build_storage

    client = RemoteDataClient()
    if SYNC_POLL_INTERVAL_SECONDS > 0:
        feed: ChangeFeed = PollingChangeFeed(client, interval=SYNC_POLL_INTERVAL_SECONDS)
    else:
        feed = _change_hub

    dispatcher = EventDispatcher()
    dispatcher.start()
    return SessionRegistry(
        storage=build_storage(),
        source=client,
        gateway=client,
        resync=client,
        change_feed=feed,
        dispatcher=dispatcher,
    )


def get_registry() -> SessionRegistry:
    """FastAPI dependency returning the process-wide registry."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = build_registry()
        return _registry


def shutdown_registry() -> None:
    global _registry
    with _registry_lock:
        registry, _registry = _registry, None
    if registry is not None:
        registry.shutdown()
