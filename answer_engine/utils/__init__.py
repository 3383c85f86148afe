"""Utility modules."""
from answer_engine.utils.json_utils import (
    dump_answer_sheet,
    json_dump,
    json_load,
    parse_answer_sheet,
    read_json_file,
    write_json_file,
)
from answer_engine.utils.time_utils import format_remaining
from answer_engine.utils.validation import validate_id, validate_question_count

__all__ = [
    "dump_answer_sheet",
    "json_dump",
    "json_load",
    "parse_answer_sheet",
    "read_json_file",
    "write_json_file",
    "format_remaining",
    "validate_id",
    "validate_question_count",
]
