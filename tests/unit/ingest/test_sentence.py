"""
Tests for Sentence-Duration Converter

Tests (term, unit) -> years conversion rules and their priority order.
"""

import pytest

from disparity_audit.ingest.sentence import (
    LIFE_SENTENCE_YEARS,
    convert_sentence_to_years,
    is_life_sentence,
    is_measurable_sentence,
)


@pytest.mark.parametrize(
    "term, unit, expected",
    [
        (24, "months", 2.0),
        ("2", "Year(s)", 2.0),
        (2, "years", 2.0),
        ("730", "Days", 730 / 365.25),
        ("18", "Months", 1.5),
    ],
)
def test_unit_scaling(term, unit, expected):
    """Test each recognized unit scales the term to years."""
    assert convert_sentence_to_years(term, unit) == pytest.approx(expected)


def test_days_conversion_value():
    """Test 730 days is just under two years."""
    assert convert_sentence_to_years(730, "days") == pytest.approx(1.9986, abs=1e-4)


@pytest.mark.parametrize(
    "term, unit",
    [
        (5, "Life"),
        ("Natural Life", "Years"),
        ("NATURAL LIFE", "Months"),
        ("10", "life sentence"),
    ],
)
def test_life_sentinel(term, unit):
    """Test "life" in either field yields the sentinel."""
    assert convert_sentence_to_years(term, unit) == LIFE_SENTENCE_YEARS


@pytest.mark.parametrize(
    "term, unit",
    [
        ("", "Years"),
        ("5", ""),
        ("N/A", "Years"),
        ("5", "n/a"),
        (None, "Years"),
    ],
)
def test_unknown_inputs(term, unit):
    """Test empty and N/A inputs are unknown, even next to "life"."""
    assert convert_sentence_to_years(term, unit) is None


def test_na_takes_priority_over_life():
    """Test N/A is checked before the life rule."""
    assert convert_sentence_to_years("n/a", "Life") is None


def test_unparseable_term():
    """Test a term without a leading number is unknown."""
    assert convert_sentence_to_years("several", "Years") is None


def test_leading_number_is_parsed():
    """Test trailing text after the number is ignored."""
    assert convert_sentence_to_years("3 yrs", "Years") == 3.0
    assert convert_sentence_to_years("2.5", "Years") == 2.5


def test_unrecognized_unit_is_unknown_not_zero():
    """Test a numeric term with an unknown unit is None."""
    assert convert_sentence_to_years(5, "Weeks") is None
    assert convert_sentence_to_years(5, "Dollars") is None


def test_life_and_measurable_helpers():
    """Test sentinel helpers."""
    assert is_life_sentence(LIFE_SENTENCE_YEARS)
    assert not is_life_sentence(2.0)
    assert not is_life_sentence(None)

    assert is_measurable_sentence(2.0)
    assert not is_measurable_sentence(None)
    assert not is_measurable_sentence(float("nan"))
    assert not is_measurable_sentence(LIFE_SENTENCE_YEARS)
