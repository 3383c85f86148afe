"""One-shot countdown for timed tests."""
from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class CountdownState(str, enum.Enum):
    """Lifecycle of a countdown."""

    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"
    STOPPED = "stopped"


class Ticker(Protocol):
    def start(self, on_tick: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class ThreadTicker:
    """
    Calls ``post(on_tick)`` once per interval from a daemon thread until stopped.

    ``post`` is normally ``EventDispatcher.post`` so ticks are applied in
    order with every other event.
    """

    def __init__(self, post: Callable[..., None], interval: float = 1.0) -> None:
        self._post = post
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self, on_tick: Callable[[], None]) -> None:
        if self._thread is not None:
            return

        def _worker() -> None:
            while not self._stop_event.wait(self._interval):
                self._post(on_tick)

        self._thread = threading.Thread(target=_worker, name="countdown_ticker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()


class CountdownScheduler:
    """
    ``Idle -> Running -> Expired``; the expiry callback fires at most once.

    Without a ticker nothing ticks on its own and ``tick()`` must be driven
    by the caller.
    """

    def __init__(self, on_expire: Callable[[], None], ticker: Ticker | None = None) -> None:
        self._on_expire = on_expire
        self._ticker = ticker
        self._state = CountdownState.IDLE
        self._remaining: int | None = None

    @property
    def state(self) -> CountdownState:
        return self._state

    @property
    def remaining_seconds(self) -> int | None:
        return self._remaining

    def start(self, duration_minutes: int | None) -> bool:
        """Start counting down. Tests without a duration never start."""
        if self._state is not CountdownState.IDLE:
            return False
        if not duration_minutes or duration_minutes <= 0:
            return False

        self._remaining = int(duration_minutes) * 60
        self._state = CountdownState.RUNNING
        if self._ticker is not None:
            self._ticker.start(self.tick)
        logger.info(f"Countdown started: {self._remaining}s")
        return True

    def tick(self) -> None:
        if self._state is not CountdownState.RUNNING or self._remaining is None:
            return

        self._remaining = max(0, self._remaining - 1)
        if self._remaining > 0:
            return

        self._state = CountdownState.EXPIRED
        if self._ticker is not None:
            self._ticker.stop()
        logger.info("Countdown expired")
        self._on_expire()

    def stop(self) -> None:
        """Cancel the countdown. Never fires expiry."""
        if self._ticker is not None:
            self._ticker.stop()
        if self._state is CountdownState.RUNNING:
            self._state = CountdownState.STOPPED
