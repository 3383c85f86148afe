import logging
from pathlib import Path

import pytest
from fastapi import HTTPException

from answer_engine import logging_setup
from answer_engine.utils import json_utils, time_utils, validation


def test_json_round_trip(tmp_path: Path) -> None:
    payload = {"1": "A", "2": "Verdadeiro", "note": "привет"}
    dumped = json_utils.json_dump(payload)
    assert "привет" in dumped
    assert " " not in json_utils.json_dump({"1": "A", "2": "B"})
    assert json_utils.json_load(dumped) == payload

    path = tmp_path / "nested" / "payload.json"
    json_utils.write_json_file(path, payload)
    assert json_utils.read_json_file(path, {}) == payload
    assert json_utils.read_json_file(tmp_path / "missing.json", {"fallback": True}) == {"fallback": True}


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (None, None),
        (0, "0:00"),
        (59, "0:59"),
        (299, "4:59"),
        (3600, "1h 00m 00s"),
        (5430, "1h 30m 30s"),
        (-5, "0:00"),
    ],
)
def test_format_remaining(seconds, expected) -> None:
    assert time_utils.format_remaining(seconds) == expected


def test_validate_id() -> None:
    assert validation.validate_id("testId", "  abc-123 ") == "abc-123"
    with pytest.raises(HTTPException):
        validation.validate_id("testId", "   ")
    with pytest.raises(HTTPException):
        validation.validate_id("testId", "../etc")
    with pytest.raises(HTTPException):
        validation.validate_id("testId", None)
    with pytest.raises(HTTPException):
        validation.validate_id("testId", "..")
    with pytest.raises(HTTPException):
        validation.validate_id("testId", "x" * (validation.MAX_TEST_ID_LENGTH + 1))
    assert validation.validate_id("testId", "x" * validation.MAX_TEST_ID_LENGTH)


@pytest.mark.parametrize("count", [1, 50, 100])
def test_validate_question_count_accepts_range(count: int) -> None:
    assert validation.validate_question_count(count) == count


@pytest.mark.parametrize("count", [0, 101, -3, True, "10", 2.5])
def test_validate_question_count_rejects(count) -> None:
    with pytest.raises(ValueError):
        validation.validate_question_count(count)


def test_answer_sheet_codec() -> None:
    assert json_utils.dump_answer_sheet({10: "V", 2: "A"}) == '{"2":"A","10":"V"}'
    assert json_utils.parse_answer_sheet('{"2":"A","3":"","4":7}') == {2: "A"}
    for raw in ["{bad", "[]", '{"x":"A"}', '{"-1":"A"}']:
        with pytest.raises(ValueError):
            json_utils.parse_answer_sheet(raw)


def test_write_json_file_leaves_no_temp_file(tmp_path: Path) -> None:
    path = tmp_path / "entry.json"
    json_utils.write_json_file(path, {"value": "1"})
    json_utils.write_json_file(path, {"value": "2"})
    assert json_utils.read_json_file(path, None) == {"value": "2"}
    assert [p.name for p in tmp_path.iterdir()] == ["entry.json"]


def test_setup_console_logging_accepts_level_names() -> None:
    root = logging.getLogger()
    urllib3_logger = logging.getLogger("urllib3")
    saved = (root.level, urllib3_logger.level)
    try:
        logging_setup.setup_console_logging("warning")
        assert root.level == logging.WARNING
        assert urllib3_logger.level == logging.WARNING
        logging_setup.setup_console_logging("not-a-level")
        assert root.level == logging.INFO
    finally:
        root.setLevel(saved[0])
        urllib3_logger.setLevel(saved[1])
