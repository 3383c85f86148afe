import threading

import pytest

from answer_engine.engine.dispatcher import EventDispatcher, InlineExecutor
from answer_engine.engine.realtime import LocalChangeFeed
from answer_engine.models.answer_key import TestDescriptor
from answer_engine.services.session_service import SessionRegistry
from answer_engine.services.storage_service import MemoryStorage
from fakes import FakeGateway, FakeSource, ManualTicker


@pytest.fixture
def tickers() -> list:
    return []


@pytest.fixture
def hub() -> LocalChangeFeed:
    return LocalChangeFeed()


@pytest.fixture
def registry(hub, tickers):
    def ticker_factory(dispatcher):
        ticker = ManualTicker()
        tickers.append(ticker)
        return ticker

    dispatcher = EventDispatcher(executor=InlineExecutor())
    dispatcher.start()
    registry = SessionRegistry(
        storage=MemoryStorage(),
        source=FakeSource([(1, "A"), (2, "B")]),
        gateway=FakeGateway(),
        change_feed=hub,
        dispatcher=dispatcher,
        ticker_factory=ticker_factory,
    )
    yield registry
    registry.shutdown()


def _descriptor(test_id="t1") -> TestDescriptor:
    return TestDescriptor(id=test_id, title="Quiz", duration_minutes=10)


def test_restart_ends_the_previous_session(registry, hub, tickers) -> None:
    first = registry.start(_descriptor())
    second = registry.start(_descriptor())

    assert not first.is_alive
    assert second.is_alive
    assert registry.get("t1") is second
    assert tickers[0].stopped
    assert not tickers[1].stopped
    assert hub.subscriber_count("t1") == 1


def test_concurrent_starts_leave_one_live_session(registry, hub, tickers) -> None:
    barrier = threading.Barrier(4)
    started = []

    def worker() -> None:
        barrier.wait()
        started.append(registry.start(_descriptor()))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(5.0)

    assert len(started) == 4
    live = [session for session in started if session.is_alive]
    assert live == [registry.get("t1")]
    assert hub.subscriber_count("t1") == 1
    assert sum(not ticker.stopped for ticker in tickers) == 1


def test_end_and_shutdown(registry, hub) -> None:
    registry.start(_descriptor("t1"))
    registry.start(_descriptor("t2"))

    assert registry.end("t1")
    assert not registry.end("t1")
    assert hub.subscriber_count("t1") == 0

    registry.shutdown()
    assert registry.get("t2") is None
    assert hub.subscriber_count("t2") == 0
