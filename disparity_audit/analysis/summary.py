"""
Case Disparity Audit - Dataset Summaries

Read-only digests of a case set:
- DatasetOverview: totals, received-year range, distinct groups
- Age histogram in fixed-width bins
- Plain-text digest used as context by a conversational assistant

Nothing is retained between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd

from disparity_audit.bias.data_slicer import DataSlicer
from disparity_audit.ingest.models import CanonicalCase, cases_to_frame
from disparity_audit.ingest.sentence import is_measurable_sentence
from disparity_audit.shared.config import Settings

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data is currently loaded."
TOP_OFFENSES = 3


@dataclass(frozen=True)
class DatasetOverview:
    """Headline numbers of a case set."""

    total_cases: int
    date_range: str  # "2015 - 2023", or "N/A" when empty
    unique_races: int
    unique_offenses: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cases": self.total_cases,
            "date_range": self.date_range,
            "unique_races": self.unique_races,
            "unique_offenses": self.unique_offenses,
        }


def describe_dataset(cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> DatasetOverview:
    """Compute the overview of a case set."""
    if not cases:
        return DatasetOverview(total_cases=0, date_range="N/A", unique_races=0, unique_offenses=0)

    years = [case.received_year for case in cases]
    return DatasetOverview(
        total_cases=len(cases),
        date_range=f"{min(years)} - {max(years)}",
        unique_races=len({case.race for case in cases}),
        unique_offenses=len({case.offense_category for case in cases}),
    )


def age_histogram(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    bin_width: int = 5,
    config: Settings | None = None,
) -> list[tuple[str, int]]:
    """
    Case counts per age bin, ascending.

    Returns:
        List of (label, count) pairs such as ("20-24", 12); empty bins are omitted
    """
    slicer = DataSlicer(config)
    frame = slicer.prepare_frame(cases)
    return [(s.label, s.size) for s in slicer.age_histogram(frame, bin_width)]


def _distribution(values: pd.Series, total: int) -> str:
    counts = values.groupby(values, sort=False).size()
    return ", ".join(f"{value}: {count / total * 100:.1f}%" for value, count in counts.items())


def create_data_summary(cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> str:
    """
    Plain-text digest of a case set for an external conversational assistant.

    Covers total cases, race and gender percentages (in order of first
    appearance), the three most frequent offense categories, the mean
    sentence (life sentences and cases without a sentence excluded) and the
    mean case duration.
    """
    if not cases:
        return NO_DATA_MESSAGE

    frame = cases_to_frame(cases)
    total = len(frame)

    offense_counts = frame.groupby("offense_category", sort=False).size()
    top_offenses = offense_counts.sort_values(ascending=False, kind="stable").head(TOP_OFFENSES)
    offenses = ", ".join(f"{offense} ({count} cases)" for offense, count in top_offenses.items())

    sentences = frame["sentence_in_years"]
    sentences = sentences[sentences.map(is_measurable_sentence).astype(bool)].astype(float)
    mean_sentence = f"{sentences.mean():.2f} years" if len(sentences) > 0 else "n/a"

    lines = [
        "Summary of the current dataset:",
        f"- Total cases: {total}",
        f"- Distribution by race: {_distribution(frame['race'], total)}",
        f"- Distribution by gender: {_distribution(frame['gender'], total)}",
        f"- Top offense categories: {offenses}",
        f"- Mean sentence (cases with a measurable sentence): {mean_sentence}",
        f"- Mean case duration: {frame['case_duration_days'].mean():.0f} days",
        "Use this summary to answer questions about the data.",
    ]

    logger.debug(f"Built data summary for {total} cases", extra={"total_cases": total})

    return "\n".join(lines)
