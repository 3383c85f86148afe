import pytest

from answer_engine.engine.dispatcher import EventDispatcher
from answer_engine.engine.resolver import AnswerKeyResolver, question_count_key
from answer_engine.models.answer_key import ResolutionSource
from answer_engine.services.data_service import RemoteServiceError
from answer_engine.services.storage_service import MemoryStorage
from fakes import DeferredExecutor, FakeResync, FakeSource


def test_resolves_count_and_options_from_answer_key() -> None:
    source = FakeSource([(1, "a"), (2, "B"), (3, "Verdadeiro")])
    resolved = AnswerKeyResolver(source, MemoryStorage()).compute("t1")

    assert resolved.question_count == 3
    assert resolved.option_set == ("A", "B", "C", "D", "E", "V")
    assert resolved.source is ResolutionSource.ANSWER_KEY


def test_question_count_is_max_number_even_when_sparse() -> None:
    source = FakeSource([(2, "A"), (7, None), (4, "")])
    resolved = AnswerKeyResolver(source, MemoryStorage()).compute("t1")
    assert resolved.question_count == 7
    assert resolved.option_set == ("A", "B", "C", "D", "E")


def test_resync_failure_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    resync = FakeResync(error=RemoteServiceError("boom"))
    source = FakeSource([(1, "V"), (2, "F")])
    resolved = AnswerKeyResolver(source, MemoryStorage(), resync=resync).compute("t1")

    assert resync.calls == ["t1"]
    assert resolved.option_set == ("V", "F")
    assert "re-sync failed" in caplog.text


def test_empty_answer_key_uses_default_count() -> None:
    resolver = AnswerKeyResolver(FakeSource([]), MemoryStorage())
    resolved = resolver.compute("t1")
    assert resolved.question_count == 10
    assert resolved.option_set == ("A", "B", "C", "D", "E")
    assert resolved.source is ResolutionSource.DEFAULT


def test_query_failure_uses_cached_count() -> None:
    storage = MemoryStorage({question_count_key("t1"): "25"})
    source = FakeSource(error=RemoteServiceError("offline"))
    resolved = AnswerKeyResolver(source, storage).compute("t1")
    assert resolved.question_count == 25
    assert resolved.source is ResolutionSource.CACHED_COUNT


def test_invalid_cached_count_falls_back_to_default() -> None:
    storage = MemoryStorage({question_count_key("t1"): "many"})
    resolver = AnswerKeyResolver(FakeSource([]), storage, default_question_count=12)
    assert resolver.compute("t1").question_count == 12


def test_resolve_publishes_to_listeners() -> None:
    resolver = AnswerKeyResolver(FakeSource([(2, "A")]), MemoryStorage())
    seen = []
    remove = resolver.add_listener(lambda test_id, resolved: seen.append((test_id, resolved)))

    resolver.resolve("t1")
    remove()
    resolver.resolve("t1")

    assert len(seen) == 1
    assert seen[0][0] == "t1"
    assert seen[0][1].question_count == 2


def test_confirm_question_count_persists_and_publishes() -> None:
    storage = MemoryStorage()
    resolver = AnswerKeyResolver(FakeSource([]), storage)
    seen = []
    resolver.add_listener(lambda test_id, resolved: seen.append(resolved))

    resolved = resolver.confirm_question_count("t1", 30)

    assert storage.get(question_count_key("t1")) == "30"
    assert resolved.question_count == 30
    assert seen == [resolved]
    assert resolver.compute("t1").question_count == 30


@pytest.mark.parametrize("count", [0, -1, 101])
def test_confirm_question_count_validates_range(count: int) -> None:
    storage = MemoryStorage()
    resolver = AnswerKeyResolver(FakeSource([]), storage)
    with pytest.raises(ValueError):
        resolver.confirm_question_count("t1", count)
    assert storage.get(question_count_key("t1")) is None


def test_background_results_applied_newest_first_drop_older_ones() -> None:
    executor = DeferredExecutor()
    dispatcher = EventDispatcher(executor=executor)
    source = FakeSource()
    source.scripted = [[(1, "V")], [(1, "A"), (2, "B")]]
    resolver = AnswerKeyResolver(source, MemoryStorage())
    seen = []
    resolver.add_listener(lambda test_id, resolved: seen.append(resolved))

    resolver.resolve_in_background("t1", dispatcher, lambda: True)
    resolver.resolve_in_background("t1", dispatcher, lambda: True)
    executor.run_all(complete_in_reverse=True)
    dispatcher.run_pending()

    assert [r.option_set for r in seen] == [("A", "B", "C", "D", "E")]
    assert seen[0].question_count == 2


def test_background_results_in_order_are_all_applied() -> None:
    executor = DeferredExecutor()
    dispatcher = EventDispatcher(executor=executor)
    source = FakeSource()
    source.scripted = [[(1, "V")], [(1, "A")]]
    resolver = AnswerKeyResolver(source, MemoryStorage())
    seen = []
    resolver.add_listener(lambda test_id, resolved: seen.append(resolved.option_set))

    resolver.resolve_in_background("t1", dispatcher, lambda: True)
    resolver.resolve_in_background("t1", dispatcher, lambda: True)
    executor.run_all()
    dispatcher.run_pending()

    assert seen == [("V",), ("A", "B", "C", "D", "E")]
