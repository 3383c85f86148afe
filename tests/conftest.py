import os
import tempfile

import pytest

# Keep the default SQLite file out of the working tree during tests.
os.environ.setdefault("DB_DIR", tempfile.mkdtemp(prefix="answer_engine_tests_"))

from answer_engine.engine.dispatcher import EventDispatcher, InlineExecutor  # noqa: E402
from answer_engine.engine.session import TestSession  # noqa: E402
from answer_engine.models.answer_key import TestDescriptor  # noqa: E402
from answer_engine.services.storage_service import MemoryStorage  # noqa: E402
from fakes import FakeConfirmation, FakeGateway, FakeNotifier, FakeSource  # noqa: E402


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def dispatcher() -> EventDispatcher:
    return EventDispatcher(executor=InlineExecutor())


@pytest.fixture
def make_session(storage, dispatcher):
    """Build a started-on-demand ``TestSession`` wired to fakes."""
    created = []

    def _make(rows=(), duration=None, test_id="test-1", **overrides):
        kwargs = {
            "source": FakeSource(rows),
            "storage": storage,
            "gateway": FakeGateway(),
            "dispatcher": dispatcher,
            "confirmation": FakeConfirmation(),
            "notifier": FakeNotifier(),
        }
        kwargs.update(overrides)
        session = TestSession(
            TestDescriptor(id=test_id, title="Sample", duration_minutes=duration),
            **kwargs,
        )
        created.append(session)
        return session

    yield _make

    for session in created:
        if session.is_alive:
            session.end()
