"""
Case Disparity Audit - Case Models

CanonicalCase is the durable unit of the system: created once during
ingestion and never mutated. A loaded dataset is a tuple of cases, so it can
be shared between readers without copying or locking.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Any

import pandas as pd


@dataclass(frozen=True)
class CanonicalCase:
    """One normalized case outcome record."""

    case_id: str
    participant_id: str
    received_date: date
    race: str
    gender: str
    age_at_incident: int
    offense_category: str
    charge_disposition: str
    sentence_type: str
    commitment_term: str
    commitment_unit: str
    case_duration_days: int
    incident_city: str
    sentencing_judge: str
    sentence_in_years: float | None = None

    @property
    def received_year(self) -> int:
        return self.received_date.year

    def to_dict(self) -> dict[str, Any]:
        """Convert case to a flat dictionary (dates as ISO strings)."""
        data = asdict(self)
        data["received_date"] = self.received_date.isoformat()
        return data


CASE_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(CanonicalCase))


def cases_to_frame(cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> pd.DataFrame:
    """
    Build a DataFrame view of a case set for aggregation.

    The frame is a fresh copy; changing it never touches the cases.
    Absent sentences are NaN in the sentence_in_years column.
    """
    if not cases:
        frame = pd.DataFrame(columns=list(CASE_COLUMNS))
    else:
        frame = pd.DataFrame([asdict(c) for c in cases], columns=list(CASE_COLUMNS))
    frame["sentence_in_years"] = pd.to_numeric(frame["sentence_in_years"], errors="coerce").astype(float)
    frame["case_duration_days"] = pd.to_numeric(frame["case_duration_days"]).astype(float)
    frame["age_at_incident"] = pd.to_numeric(frame["age_at_incident"]).astype(float)
    return frame


@dataclass
class IngestionResult:
    """
    Result of a dataset load.

    Exactly one of `records` / `error` is populated: on failure records is
    empty and error holds the message.
    """

    records: tuple[CanonicalCase, ...] = ()
    error: str | None = None
    rows_input: int = 0
    median_age: float | None = None
    median_duration_days: float | None = None
    duration_seconds: float = 0.0
    drop_reasons: dict[str, int] = field(default_factory=dict)
    transformations_applied: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def rows_output(self) -> int:
        return len(self.records)

    @property
    def rows_dropped(self) -> int:
        return self.rows_input - self.rows_output

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "records": len(self.records),
            "error": self.error,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "rows_dropped": self.rows_dropped,
            "median_age": self.median_age,
            "median_duration_days": self.median_duration_days,
            "duration_seconds": self.duration_seconds,
            "drop_reasons": self.drop_reasons,
            "transformations_applied": self.transformations_applied,
        }
