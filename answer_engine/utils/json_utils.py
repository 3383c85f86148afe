"""JSON helpers for persisted answer sheets and storage files."""
import json
import os
from pathlib import Path


def json_dump(payload: object) -> str:
    """Serialize object to compact JSON string (the persisted storage format)."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def json_load(data: str) -> object:
    """Deserialize JSON string to object."""
    return json.loads(data)


def dump_answer_sheet(answers: dict[int, str]) -> str:
    """Serialize ``{question: option}`` with string keys in question order."""
    return json_dump({str(q): answers[q] for q in sorted(answers)})


def parse_answer_sheet(raw: str) -> dict[int, str]:
    """
    Parse a persisted answer sheet.

    Entries whose option is not a non-empty string are skipped. Anything
    else that is malformed raises ``ValueError`` (``JSONDecodeError`` included)
    so the caller can discard the whole record.
    """
    payload = json_load(raw)
    if not isinstance(payload, dict):
        raise ValueError(f"expected an object, got {type(payload).__name__}")

    answers: dict[int, str] = {}
    for question, option in payload.items():
        number = int(question)
        if number < 1:
            raise ValueError(f"invalid question number {question!r}")
        if isinstance(option, str) and option:
            answers[number] = option
    return answers


def read_json_file(path: Path, default: object) -> object:
    """Read and parse JSON file, return default if not exists."""
    if not path.exists():
        return default
    return json_load(path.read_text(encoding="utf-8"))


def write_json_file(path: Path, payload: object) -> None:
    """Write object as JSON file, replacing any previous file in one step."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.tmp")
    tmp_path.write_text(json_dump(payload), encoding="utf-8")
    os.replace(tmp_path, path)
