import threading

from answer_engine.engine.realtime import (
    AnswerKeyChange,
    LocalChangeFeed,
    PollingChangeFeed,
    RealtimeSyncClient,
)
from answer_engine.engine.resolver import AnswerKeyResolver
from answer_engine.services.storage_service import MemoryStorage
from fakes import FakeSource


def _client(dispatcher, source=None):
    feed = LocalChangeFeed()
    resolver = AnswerKeyResolver(source or FakeSource([(1, "A")]), MemoryStorage())
    published = []
    resolver.add_listener(lambda test_id, resolved: published.append(test_id))
    return RealtimeSyncClient(feed, resolver, dispatcher), feed, published


def test_local_feed_delivers_per_test() -> None:
    feed = LocalChangeFeed()
    seen = []
    unsubscribe = feed.subscribe("t1", seen.append)
    feed.subscribe("t2", lambda change: seen.append(("other", change)))

    change = AnswerKeyChange(test_id="t1", change_type="INSERT", record={"question_number": 1})
    assert feed.publish(change) == 1
    assert seen == [change]

    unsubscribe()
    unsubscribe()
    assert feed.publish(change) == 0
    assert feed.subscriber_count("t2") == 1


def test_change_triggers_resolution(dispatcher) -> None:
    client, feed, published = _client(dispatcher)
    client.start("t1")

    feed.publish(AnswerKeyChange(test_id="t1", change_type="DELETE"))
    assert published == []
    dispatcher.run_pending()

    assert published == ["t1"]


def test_change_queued_before_stop_is_dropped(dispatcher) -> None:
    client, feed, published = _client(dispatcher)
    client.start("t1")

    feed.publish(AnswerKeyChange(test_id="t1", change_type="UPDATE"))
    client.stop()
    dispatcher.run_pending()

    assert published == []
    assert not client.is_subscribed
    assert feed.subscriber_count("t1") == 0
    client.stop()


def test_switching_tests_replaces_subscription(dispatcher) -> None:
    client, feed, published = _client(dispatcher)
    client.start("t1")
    feed.publish(AnswerKeyChange(test_id="t1", change_type="UPDATE"))
    client.start("t2")

    assert feed.subscriber_count("t1") == 0
    assert feed.subscriber_count("t2") == 1
    assert client.test_id == "t2"

    feed.publish(AnswerKeyChange(test_id="t2", change_type="UPDATE"))
    dispatcher.run_pending()
    assert published == ["t2"]


def test_start_for_same_test_keeps_subscription(dispatcher) -> None:
    client, feed, _ = _client(dispatcher)
    client.start("t1")
    client.start("t1")
    assert feed.subscriber_count("t1") == 1


def test_polling_feed_reports_changed_rows() -> None:
    fetched = threading.Event()

    class RecordingSource(FakeSource):
        def fetch_answer_key(self, test_id):
            entries = super().fetch_answer_key(test_id)
            fetched.set()
            return entries

    source = RecordingSource([(1, "A")])
    feed = PollingChangeFeed(source, interval=0.01)
    changed = threading.Event()
    seen = []

    def handler(change):
        seen.append(change)
        changed.set()

    stop = feed.subscribe("t1", handler)
    try:
        assert fetched.wait(2.0)
        source.rows = [(1, "A"), (2, "B")]
        assert changed.wait(2.0)
    finally:
        stop()

    assert seen[0] == AnswerKeyChange(test_id="t1", change_type="UPDATE")
