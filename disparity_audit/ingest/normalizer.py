"""
Case Disparity Audit - Record Normalizer

Turns raw rows (all strings, headers already resolved) into CanonicalCase
records. Runs in two passes because imputation needs dataset-wide medians:

1. Statistics pass: parse ages and case durations over all rows, discard
   unparseable and out-of-domain values, take the median of what is left
   (fallback constants when nothing is left).
2. Transform pass: parse dates (rows with bad dates are dropped),
   canonicalize race and gender, substitute defaults for "N/A" fields,
   impute invalid ages/durations with the medians, drop rows whose race or
   gender is Unknown, attach the sentence length in years.

Usage:
    normalizer = RecordNormalizer(config)
    result = normalizer.normalize(raw_df, mapping)
    result.cases  # tuple[CanonicalCase, ...]
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

import numpy as np
import pandas as pd

from disparity_audit.ingest.errors import NoValidRecordsError
from disparity_audit.ingest.models import CanonicalCase
from disparity_audit.ingest.schema import CANONICAL_FIELDS
from disparity_audit.ingest.sentence import convert_sentence_to_years
from disparity_audit.shared.config import NormalizationConfig, Settings, get_config

logger = logging.getLogger(__name__)

# Fields that take the unknown label when absent or "N/A"
CATEGORICAL_FIELDS = [
    "offense_category",
    "charge_disposition",
    "sentence_type",
    "incident_city",
    "sentencing_judge",
]

# Fields that become an empty string when absent or "N/A"
TEXT_FIELDS = ["case_id", "participant_id", "commitment_term", "commitment_unit"]

# Largest whole number a float holds exactly; larger durations are invalid
MAX_WHOLE_NUMBER = 2**53


@dataclass
class NormalizationResult:
    """Result of normalizing a raw table."""

    cases: tuple[CanonicalCase, ...]
    median_age: float
    median_duration_days: float
    rows_input: int
    drop_reasons: dict[str, int] = field(default_factory=dict)
    transformations_applied: list[str] = field(default_factory=list)

    @property
    def rows_output(self) -> int:
        return len(self.cases)


# =============================================================================
# Value Canonicalization
# =============================================================================


def _is_na(text: str, na_tokens: Iterable[str]) -> bool:
    return text.strip().lower() in {t.strip().lower() for t in na_tokens}


def canonicalize_race(value: object, config: NormalizationConfig | None = None) -> str:
    """
    Map a raw race value onto a standardized label.

    Case-insensitive substring match against the ordered known-race list;
    the first hit wins ("White Hispanic" -> "Hispanic"). Unmatched values
    keep their text with the first letter capitalized. Empty or "N/A"
    becomes the unknown label.
    """
    config = config or NormalizationConfig()
    text = "" if value is None else str(value).strip()
    if _is_na(text, config.na_tokens):
        return config.unknown_label

    lowered = text.lower()
    for label in config.known_races:
        if label.lower() in lowered:
            return label

    return text[0].upper() + text[1:]


def canonicalize_gender(value: object, config: NormalizationConfig | None = None) -> str:
    """Map a raw gender value: empty or "N/A" becomes the unknown label, else unchanged."""
    config = config or NormalizationConfig()
    text = "" if value is None else str(value).strip()
    if _is_na(text, config.na_tokens):
        return config.unknown_label
    return text


def _parse_whole_numbers(series: pd.Series) -> pd.Series:
    """Parse "1,234" / "25.7" style text into truncated floats (NaN on failure)."""
    cleaned = series.astype(str).str.replace(",", "", regex=False).str.strip()
    return np.trunc(pd.to_numeric(cleaned, errors="coerce").astype(float))


def _valid_durations(durations: pd.Series) -> pd.Series:
    """Mask of finite, non-negative durations small enough to store as integers."""
    return np.isfinite(durations) & (durations >= 0) & (durations <= MAX_WHOLE_NUMBER)


def _parse_received_date(value: str) -> date | None:
    """Parse one received date, keeping the calendar date as written (offsets are not applied)."""
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# Record Normalizer
# =============================================================================


class RecordNormalizer:
    """
    Two-pass normalizer from raw rows to canonical cases.

    Tracks the transformations applied and the number of rows dropped per
    reason so a load can be diagnosed from its result alone.
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the normalizer.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.rules = self.config.normalization
        self._transformations: list[str] = []
        self._drop_reasons: dict[str, int] = {}

    def normalize(self, df: pd.DataFrame, mapping: dict[str, str]) -> NormalizationResult:
        """
        Normalize a raw table.

        Args:
            df: Raw table, one row per record
            mapping: Canonical field -> input header (from resolve_columns)

        Returns:
            NormalizationResult with the canonical cases and computed medians

        Raises:
            NoValidRecordsError: If no row survives normalization
        """
        self._transformations = []
        self._drop_reasons = {}
        rows_input = len(df)

        frame = self._apply_column_mappings(df, mapping)

        # Pass 1: dataset-wide statistics
        median_age, median_duration = self.compute_medians(frame)

        # Pass 2: per-row transform
        frame = self._process_dates(frame)
        frame = self._standardize_demographics(frame)
        frame = self._apply_defaults(frame)
        frame = self._impute_numeric(frame, median_age, median_duration)
        frame = self._drop_unknown_demographics(frame)
        frame = self._attach_sentence_years(frame)

        if frame.empty:
            logger.warning(
                f"All {rows_input} rows were dropped during normalization",
                extra={"rows_input": rows_input, "drop_reasons": self._drop_reasons},
            )
            raise NoValidRecordsError(rows_input)

        cases = tuple(self._to_cases(frame))

        logger.info(
            f"Normalized {rows_input} -> {len(cases)} rows",
            extra={
                "rows_input": rows_input,
                "rows_output": len(cases),
                "median_age": median_age,
                "median_duration_days": median_duration,
                "drop_reasons": self._drop_reasons,
            },
        )

        return NormalizationResult(
            cases=cases,
            median_age=median_age,
            median_duration_days=median_duration,
            rows_input=rows_input,
            drop_reasons=dict(self._drop_reasons),
            transformations_applied=list(self._transformations),
        )

    def compute_medians(self, frame: pd.DataFrame) -> tuple[float, float]:
        """
        Statistics pass: median of valid ages and valid case durations.

        Ages are valid strictly inside the configured bounds; durations are
        valid when finite, non-negative and no larger than MAX_WHOLE_NUMBER.
        Empty sets fall back to configured constants.
        """
        ages = _parse_whole_numbers(frame["age_at_incident"])
        valid_ages = ages[(ages > self.rules.min_age_exclusive) & (ages < self.rules.max_age_exclusive)]

        durations = _parse_whole_numbers(frame["case_duration_days"])
        valid_durations = durations[_valid_durations(durations)]

        median_age = (
            float(valid_ages.median()) if len(valid_ages) > 0 else float(self.rules.fallback_median_age)
        )
        median_duration = (
            float(valid_durations.median())
            if len(valid_durations) > 0
            else float(self.rules.fallback_median_duration_days)
        )

        self.log_transformation("compute_medians")
        return median_age, median_duration

    def log_transformation(self, name: str) -> None:
        """Log a transformation that was applied."""
        self._transformations.append(name)

    def log_dropped_rows(self, reason: str, count: int) -> None:
        """Log rows that were dropped."""
        if count > 0:
            self._drop_reasons[reason] = self._drop_reasons.get(reason, 0) + count

    # =========================================================================
    # Private Transform Steps
    # =========================================================================

    def _apply_column_mappings(self, df: pd.DataFrame, mapping: dict[str, str]) -> pd.DataFrame:
        """Select resolved columns under canonical names; absent optional fields become empty."""
        frame = pd.DataFrame(index=df.index)
        for spec in CANONICAL_FIELDS:
            header = mapping.get(spec.name)
            if header is not None and header in df.columns:
                frame[spec.name] = df[header].fillna("").astype(str).str.strip()
            else:
                frame[spec.name] = ""

        self.log_transformation(f"renamed_columns: {sorted(mapping)}")
        return frame.reset_index(drop=True)

    def _process_dates(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Parse received dates; rows that fail to parse are dropped."""
        parsed = frame["received_date"].map(_parse_received_date)

        invalid = parsed.isna()
        self.log_dropped_rows("invalid_date", int(invalid.sum()))

        frame = frame[~invalid].copy()
        frame["received_date"] = parsed[~invalid]
        self.log_transformation("process_received_date")
        return frame

    def _standardize_demographics(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Canonicalize race and gender."""
        frame["race"] = frame["race"].map(lambda v: canonicalize_race(v, self.rules))
        frame["gender"] = frame["gender"].map(lambda v: canonicalize_gender(v, self.rules))
        self.log_transformation("standardize_demographics")
        return frame

    def _apply_defaults(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Substitute per-field defaults for empty and "N/A" values."""
        na_tokens = {t.strip().lower() for t in self.rules.na_tokens}

        for col in CATEGORICAL_FIELDS:
            missing = frame[col].str.lower().isin(na_tokens)
            if missing.any():
                frame.loc[missing, col] = self.rules.unknown_label
                self.log_transformation(f"fill_missing_{col}")

        for col in TEXT_FIELDS:
            missing = frame[col].str.lower().isin(na_tokens)
            if missing.any():
                frame.loc[missing, col] = ""

        return frame

    def _impute_numeric(self, frame: pd.DataFrame, median_age: float, median_duration: float) -> pd.DataFrame:
        """Replace invalid ages and durations with the dataset medians."""
        ages = _parse_whole_numbers(frame["age_at_incident"])
        invalid_age = ~((ages > self.rules.min_age_exclusive) & (ages < self.rules.max_age_exclusive))
        frame["age_at_incident"] = ages.where(~invalid_age, _round_half_up(median_age)).astype(int)

        durations = _parse_whole_numbers(frame["case_duration_days"])
        invalid_duration = ~_valid_durations(durations)
        frame["case_duration_days"] = durations.where(
            ~invalid_duration, _round_half_up(median_duration)
        ).astype(int)

        if invalid_age.any():
            self.log_transformation("impute_age_at_incident")
        if invalid_duration.any():
            self.log_transformation("impute_case_duration_days")

        return frame

    def _drop_unknown_demographics(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Exclude rows whose race or gender is unknown from the analysis set."""
        unknown = self.rules.unknown_label
        unknown_race = frame["race"] == unknown
        unknown_gender = (frame["gender"] == unknown) & ~unknown_race

        self.log_dropped_rows("unknown_race", int(unknown_race.sum()))
        self.log_dropped_rows("unknown_gender", int(unknown_gender.sum()))

        return frame[~(unknown_race | unknown_gender)].copy()

    def _attach_sentence_years(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Derive sentence_in_years from the raw commitment term and unit."""
        frame["sentence_in_years"] = [
            convert_sentence_to_years(term, unit)
            for term, unit in zip(frame["commitment_term"], frame["commitment_unit"], strict=True)
        ]
        self.log_transformation("convert_sentence_to_years")
        return frame

    def _to_cases(self, frame: pd.DataFrame) -> Iterable[CanonicalCase]:
        for row in frame.to_dict("records"):
            sentence = row["sentence_in_years"]
            if sentence is not None and pd.isna(sentence):
                sentence = None
            yield CanonicalCase(
                case_id=row["case_id"],
                participant_id=row["participant_id"],
                received_date=row["received_date"],
                race=row["race"],
                gender=row["gender"],
                age_at_incident=int(row["age_at_incident"]),
                offense_category=row["offense_category"],
                charge_disposition=row["charge_disposition"],
                sentence_type=row["sentence_type"],
                commitment_term=row["commitment_term"],
                commitment_unit=row["commitment_unit"],
                case_duration_days=int(row["case_duration_days"]),
                incident_city=row["incident_city"],
                sentencing_judge=row["sentencing_judge"],
                sentence_in_years=float(sentence) if sentence is not None else None,
            )


# =============================================================================
# Convenience Functions
# =============================================================================


def normalize_cases(
    df: pd.DataFrame,
    mapping: dict[str, str],
    config: Settings | None = None,
) -> NormalizationResult:
    """Convenience function to normalize a raw table."""
    return RecordNormalizer(config).normalize(df, mapping)
