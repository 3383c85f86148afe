import pytest

from answer_engine.engine.options import DEFAULT_OPTIONS, derive_option_set, normalize_answer


@pytest.mark.parametrize("raw", ["a", "B", "c", "D", "e", " a ", "E"])
def test_normalize_letters_any_case(raw: str) -> None:
    assert normalize_answer(raw) == raw.strip().upper()


def test_normalize_booleans() -> None:
    assert normalize_answer("verdadeiro") == "V"
    assert normalize_answer("Falso") == "F"
    assert normalize_answer("true") == "V"
    assert normalize_answer("FALSE") == "F"
    assert normalize_answer("v") == "V"
    assert normalize_answer("f") == "F"


def test_normalize_blank_and_absent() -> None:
    assert normalize_answer("") is None
    assert normalize_answer("   ") is None
    assert normalize_answer(None) is None


def test_normalize_passes_other_tokens_upper_cased() -> None:
    assert normalize_answer("certo") == "CERTO"
    assert normalize_answer("x") == "X"


def test_derive_default_when_empty() -> None:
    assert derive_option_set([]) == ("A", "B", "C", "D", "E")
    assert derive_option_set([None, ""]) == DEFAULT_OPTIONS


def test_derive_booleans_only_as_observed() -> None:
    assert derive_option_set(["V"]) == ("V",)
    assert derive_option_set(["F"]) == ("F",)
    assert derive_option_set(["V", "F"]) == ("V", "F")
    assert derive_option_set(["F", "V", "F"]) == ("V", "F")


def test_derive_letters_always_complete() -> None:
    assert derive_option_set(["B"]) == ("A", "B", "C", "D", "E")
    assert derive_option_set(["A", "V"]) == ("A", "B", "C", "D", "E", "V")


def test_derive_other_tokens_first_seen_order() -> None:
    options = derive_option_set(["Z", "A", "Y", "Z", "F"])
    assert options == ("A", "B", "C", "D", "E", "F", "Z", "Y")
