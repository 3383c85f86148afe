"""Answer-key token normalization and option set derivation."""
from __future__ import annotations

from typing import Iterable

LETTER_OPTIONS: tuple[str, ...] = ("A", "B", "C", "D", "E")
BOOLEAN_OPTIONS: tuple[str, ...] = ("V", "F")
DEFAULT_OPTIONS: tuple[str, ...] = LETTER_OPTIONS

_TRUE_TOKENS = {"V", "VERDADEIRO", "TRUE"}
_FALSE_TOKENS = {"F", "FALSO", "FALSE"}


def normalize_answer(raw: str | None) -> str | None:
    """
    Map a raw answer-key token to its canonical option.

    Letters a-e (any case) map to themselves upper-cased, true/false
    spellings map to ``V``/``F``, and anything else non-blank is passed
    through upper-cased as a discovered option. Blank input gives ``None``.
    """
    if raw is None:
        return None
    value = str(raw).strip().upper()
    if not value:
        return None
    if value in LETTER_OPTIONS:
        return value
    if value in _TRUE_TOKENS:
        return "V"
    if value in _FALSE_TOKENS:
        return "F"
    return value


def derive_option_set(correct_answers: Iterable[str | None]) -> tuple[str, ...]:
    """
    Compute the selectable options for a test from its canonical answers.

    All five letters are offered as soon as one letter question exists;
    booleans are offered only as observed (V before F). Other tokens follow
    in first-seen order.
    """
    observed = [answer for answer in correct_answers if answer]
    if not observed:
        return DEFAULT_OPTIONS

    seen = set(observed)
    options: list[str] = []

    if seen.intersection(LETTER_OPTIONS):
        options.extend(LETTER_OPTIONS)

    if seen.intersection(BOOLEAN_OPTIONS):
        options.extend(symbol for symbol in BOOLEAN_OPTIONS if symbol in seen)

    for answer in observed:
        if answer not in options:
            options.append(answer)

    if not options:
        return DEFAULT_OPTIONS
    return tuple(options)
