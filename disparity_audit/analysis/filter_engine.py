"""
Case Disparity Audit - Filter Engine

Pure subset selection over a canonical case set. A case passes a FilterSpec
when its received year lies in the inclusive year range AND its offense
category and incident city match the selection ("All" matches anything).

The canonical set is never modified; filtering returns a new tuple.

Usage:
    spec = FilterSpec.full_extent(cases)
    spec = spec.with_offense("Narcotics")
    subset = apply_filter(cases, spec)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date

from disparity_audit.ingest.models import CanonicalCase
from disparity_audit.shared.config import Settings, get_config

logger = logging.getLogger(__name__)

ALL = "All"


@dataclass(frozen=True)
class FilterSpec:
    """User-selected sub-range of the case set."""

    year_range: tuple[int, int]
    offense_category: str = ALL
    incident_city: str = ALL

    def __post_init__(self) -> None:
        year_min, year_max = self.year_range
        if year_min > year_max:
            raise ValueError(f"Invalid year range: {year_min} > {year_max}")

    @classmethod
    def full_extent(
        cls,
        cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
        config: Settings | None = None,
    ) -> FilterSpec:
        """The filter that keeps every case of the set."""
        config = config or get_config()
        return cls(year_range=year_extent(cases, config.filters.default_window_years))

    def with_years(self, year_min: int, year_max: int) -> FilterSpec:
        return replace(self, year_range=(year_min, year_max))

    def with_offense(self, offense_category: str) -> FilterSpec:
        return replace(self, offense_category=offense_category)

    def with_city(self, incident_city: str) -> FilterSpec:
        return replace(self, incident_city=incident_city)

    def matches(self, case: CanonicalCase) -> bool:
        """Whether a single case passes this filter."""
        year_min, year_max = self.year_range
        if not year_min <= case.received_year <= year_max:
            return False
        if self.offense_category != ALL and case.offense_category != self.offense_category:
            return False
        if self.incident_city != ALL and case.incident_city != self.incident_city:
            return False
        return True


def apply_filter(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    spec: FilterSpec,
) -> tuple[CanonicalCase, ...]:
    """
    Select the cases that pass a filter.

    Args:
        cases: Canonical case set (not modified)
        spec: Filter to apply

    Returns:
        New tuple with the passing cases, in input order
    """
    filtered = tuple(case for case in cases if spec.matches(case))

    logger.debug(
        f"Filter kept {len(filtered)}/{len(cases)} cases",
        extra={
            "year_range": list(spec.year_range),
            "offense_category": spec.offense_category,
            "incident_city": spec.incident_city,
            "rows_output": len(filtered),
        },
    )

    return filtered


def year_extent(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    default_window_years: int = 20,
    today: date | None = None,
) -> tuple[int, int]:
    """
    Valid year-range bounds for a case set.

    Returns:
        (min received year, max received year); for an empty set the
        window [current year - default_window_years, current year]
    """
    if not cases:
        current_year = (today or date.today()).year
        return current_year - default_window_years, current_year

    years = [case.received_year for case in cases]
    return min(years), max(years)


def filter_options(cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> dict[str, list[str]]:
    """Sorted distinct offense categories and incident cities, for building selectors."""
    return {
        "offense_category": sorted({case.offense_category for case in cases}),
        "incident_city": sorted({case.incident_city for case in cases}),
    }
