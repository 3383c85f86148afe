"""
Single-threaded event dispatcher.

Timer ticks, change notifications, user actions and network completions are
all queued here and applied one at a time, in arrival order, on one logical
thread. Blocking I/O runs on an executor and posts its completion back.
"""
from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)

_STOP = object()


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class EventDispatcher:
    """Serializes callbacks into one ordered queue."""

    def __init__(self, executor: Executor | None = None, name: str = "answer_engine") -> None:
        self._queue: queue.Queue = queue.Queue()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix=f"{name}_io"
        )
        self._owns_executor = executor is None
        self._name = name
        self._worker: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue a callback. Safe to call from any thread."""
        self._queue.put((callback, args))

    def run_pending(self) -> int:
        """Run queued callbacks on the calling thread until the queue is empty."""
        handled = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return handled
            if item is _STOP:
                continue
            self._run(item)
            handled += 1

    def call(self, callback: Callable[..., Any], *args: Any, timeout: float | None = None) -> Any:
        """
        Run ``callback`` on the dispatcher thread and return its result.

        Without a worker thread the queue is drained inline, so earlier
        events still run first.
        """
        if self.is_running and threading.current_thread() is self._worker:
            return callback(*args)

        future: Future = Future()
        self.post(self._resolve_into, future, callback, args)
        if not self.is_running:
            self.run_pending()
        return future.result(timeout=timeout)

    def submit_background(
        self,
        fn: Callable[[], Any],
        on_done: Callable[[Future], None],
    ) -> Future:
        """Run blocking ``fn`` off-queue; ``on_done(future)`` is posted back."""
        future = self._executor.submit(fn)
        future.add_done_callback(lambda done: self.post(on_done, done))
        return future

    def start(self) -> None:
        """Start the worker thread that drains the queue."""
        if self.is_running:
            return
        self._worker = threading.Thread(
            target=self._loop,
            name=f"{self._name}_dispatcher",
            daemon=True,
        )
        self._worker.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the worker thread and release the executor."""
        worker = self._worker
        if worker is not None:
            self._queue.put(_STOP)
            if threading.current_thread() is not worker:
                worker.join(timeout)
            self._worker = None
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            self._run(item)

    @staticmethod
    def _run(item: tuple[Callable[..., Any], tuple[Any, ...]]) -> None:
        callback, args = item
        try:
            callback(*args)
        except Exception:
            logger.exception("Unhandled error in dispatched callback %r", callback)

    @staticmethod
    def _resolve_into(
        future: Future, callback: Callable[..., Any], args: tuple[Any, ...]
    ) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(callback(*args))
        except BaseException as exc:
            future.set_exception(exc)
