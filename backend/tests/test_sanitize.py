"""Free-text cleaning applied to booking and review input."""

from vetclinic.utils.sanitize import normalize_optional, sanitize_text


def test_markup_is_stripped_and_text_escaped() -> None:
    assert sanitize_text("  <b>Limping</b> & off food  ") == "Limping &amp; off food"


def test_blank_or_missing_text_becomes_none() -> None:
    assert sanitize_text(None) is None
    assert sanitize_text("   ") is None
    assert sanitize_text("<i></i>") is None


def test_truncation_never_splits_an_entity() -> None:
    cleaned = sanitize_text("x" * 9 + "&" + "tail", max_length=10)
    assert cleaned == "x" * 9 + "&amp;"


def test_normalize_optional() -> None:
    assert normalize_optional("  Surgery ") == "Surgery"
    assert normalize_optional("   ") is None
    assert normalize_optional(None) is None
