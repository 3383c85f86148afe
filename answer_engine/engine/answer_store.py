"""Learner answers for one test, persisted on every change."""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Iterable

from answer_engine.utils.json_utils import dump_answer_sheet, parse_answer_sheet

if TYPE_CHECKING:
    from answer_engine.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)


def answers_key(test_id: str) -> str:
    return f"test_answers_{test_id}"


class PersistedAnswerStore:
    """
    In-memory answer sheet mirrored to key-value storage.

    Writes are only accepted for options in the live option set. Until the
    first ``reconcile`` the option set is empty and every write is rejected.
    """

    def __init__(self, storage: "KeyValueStorage") -> None:
        self._storage = storage
        self._test_id: str | None = None
        self._answers: dict[int, str] = {}
        self._option_set: tuple[str, ...] = ()
        self._question_count = 0

    @property
    def test_id(self) -> str | None:
        return self._test_id

    @property
    def answers(self) -> dict[int, str]:
        return dict(self._answers)

    @property
    def option_set(self) -> tuple[str, ...]:
        return self._option_set

    @property
    def answered_count(self) -> int:
        return len(self._answers)

    def set_question_count(self, question_count: int) -> list[int]:
        """Adopt a new question count and drop answers to questions past it."""
        self._question_count = question_count
        if question_count <= 0:
            return []
        dropped = sorted(q for q in self._answers if q > question_count)
        if not dropped:
            return []

        for question in dropped:
            del self._answers[question]
        logger.info(
            f"Dropped {len(dropped)} answer(s) past question {question_count} "
            f"for test {self._test_id}: {dropped}"
        )
        self._persist()
        return dropped

    def load(self, test_id: str) -> dict[int, str]:
        """Hydrate from storage. Missing or corrupt records give an empty sheet."""
        self._test_id = test_id
        self._answers = {}

        raw = self._storage.get(answers_key(test_id))
        if raw is None:
            return {}

        try:
            answers = parse_answer_sheet(raw)
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            logger.warning(f"Discarding corrupt saved answers for test {test_id}: {exc}")
            self._storage.remove(answers_key(test_id))
            return {}

        self._answers = answers
        return dict(answers)

    def set(self, question: int, option: str) -> bool:
        """Record an answer. Returns False (and changes nothing) if rejected."""
        if self._test_id is None:
            return False
        if option not in self._option_set:
            logger.debug(
                "Rejected option %r for question %s of test %s", option, question, self._test_id
            )
            return False
        if question < 1 or (self._question_count and question > self._question_count):
            logger.debug("Rejected out-of-range question %s for test %s", question, self._test_id)
            return False

        self._answers[question] = option
        self._persist()
        return True

    def reconcile(self, option_set: Iterable[str]) -> list[int]:
        """Adopt a new option set and drop answers that are no longer valid."""
        self._option_set = tuple(option_set)
        dropped = sorted(q for q, option in self._answers.items() if option not in self._option_set)
        if not dropped:
            return []

        for question in dropped:
            del self._answers[question]
        logger.info(
            f"Dropped {len(dropped)} stale answer(s) for test {self._test_id}: {dropped}"
        )
        self._persist()
        return dropped

    def clear(self) -> None:
        """Forget all answers and remove the persisted record."""
        self._answers = {}
        if self._test_id is not None:
            self._storage.remove(answers_key(self._test_id))

    def _persist(self) -> None:
        if self._test_id is None:
            return
        self._storage.set(answers_key(self._test_id), dump_answer_sheet(self._answers))
