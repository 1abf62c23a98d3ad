"""
Case Disparity Audit - Sentence-Duration Converter

Turns a raw (commitment term, commitment unit) pair into a length in years.

Rules, in priority order:
    1. Either value empty or "n/a" (case-insensitive) -> None (unknown)
    2. Either value contains "life" -> LIFE_SENTENCE_YEARS sentinel
    3. Term does not start with a number -> None
    4. Unit contains "year" -> term, "month" -> term / 12,
       "day" -> term / 365.25, anything else -> None
"""

from __future__ import annotations

import math
import re
from typing import Any

LIFE_SENTENCE_YEARS = 99.0
DAYS_PER_YEAR = 365.25
MONTHS_PER_YEAR = 12

_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_UNKNOWN_TOKENS = {"", "n/a"}


def _parse_leading_float(text: str) -> float | None:
    """Parse the numeric prefix of text ("12 yrs" -> 12.0)."""
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return None
    value = float(match.group(0))
    return value if math.isfinite(value) else None


def convert_sentence_to_years(term: Any, unit: Any) -> float | None:
    """
    Convert a commitment term and unit into years.

    Args:
        term: Raw commitment term (number or string, e.g. 24, "24", "Natural Life")
        unit: Raw commitment unit (e.g. "Months", "Year(s)", "Life")

    Returns:
        Sentence length in years, LIFE_SENTENCE_YEARS for a life sentence,
        or None when the pair cannot be interpreted.

    Example:
        convert_sentence_to_years(24, "months")  # -> 2.0
        convert_sentence_to_years("Natural Life", "Years")  # -> 99.0
    """
    term_text = "" if term is None else str(term).strip().lower()
    unit_text = "" if unit is None else str(unit).strip().lower()

    if term_text in _UNKNOWN_TOKENS or unit_text in _UNKNOWN_TOKENS:
        return None

    if "life" in term_text or "life" in unit_text:
        return LIFE_SENTENCE_YEARS

    value = _parse_leading_float(term_text)
    if value is None:
        return None

    if "year" in unit_text:
        return value
    if "month" in unit_text:
        return value / MONTHS_PER_YEAR
    if "day" in unit_text:
        return value / DAYS_PER_YEAR

    # Unrecognized unit: unknown, not zero
    return None


def is_life_sentence(years: float | None) -> bool:
    """Check whether a converted value is the life-sentence sentinel."""
    return years is not None and years >= LIFE_SENTENCE_YEARS


def is_measurable_sentence(years: float | None) -> bool:
    """Check whether a converted value can take part in mean-sentence statistics."""
    return years is not None and not math.isnan(years) and not is_life_sentence(years)
