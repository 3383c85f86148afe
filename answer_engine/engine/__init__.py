"""Answer-capture engine: resolution, answer sheet, countdown, realtime sync, submission."""
from answer_engine.engine.answer_store import PersistedAnswerStore
from answer_engine.engine.countdown import CountdownScheduler, CountdownState, ThreadTicker
from answer_engine.engine.dispatcher import EventDispatcher, InlineExecutor
from answer_engine.engine.options import derive_option_set, normalize_answer
from answer_engine.engine.realtime import (
    AnswerKeyChange,
    LocalChangeFeed,
    PollingChangeFeed,
    RealtimeSyncClient,
)
from answer_engine.engine.resolver import AnswerKeyResolver
from answer_engine.engine.session import TestSession
from answer_engine.engine.submission import (
    SubmissionController,
    SubmissionError,
    SubmissionState,
    SubmitOutcome,
    SubmitTrigger,
)

__all__ = [
    "AnswerKeyChange",
    "AnswerKeyResolver",
    "CountdownScheduler",
    "CountdownState",
    "EventDispatcher",
    "InlineExecutor",
    "LocalChangeFeed",
    "PersistedAnswerStore",
    "PollingChangeFeed",
    "RealtimeSyncClient",
    "SubmissionController",
    "SubmissionError",
    "SubmissionState",
    "SubmitOutcome",
    "SubmitTrigger",
    "TestSession",
    "ThreadTicker",
    "derive_option_set",
    "normalize_answer",
]
