"""
Case Disparity Audit - Data Slicer

Slice a case set along demographic and geographic dimensions:
- Categorical slicing (race, gender, incident city, age group)
- Range-based slicing (age bins)
- Cross-dimensional slicing (race x gender x age group)

Slicing is the grouping step of every disparity metric: each slice is one
group whose statistics are compared against the others.

Usage:
    slicer = DataSlicer(config)
    frame = slicer.prepare_frame(cases)

    # Slice by race
    slices = slicer.slice_by_category(frame, "race")

    # Intersectional slices
    slices = slicer.cross_slice(frame, ["race", "gender", "age_group"])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd

from disparity_audit.ingest.models import CanonicalCase, cases_to_frame
from disparity_audit.shared.config import Settings, get_config

logger = logging.getLogger(__name__)

AGE_GROUPS: tuple[str, ...] = ("< 25", "25-40", "> 40")

INTERSECTION_DIMENSIONS: list[str] = ["race", "gender", "age_group"]

# Grouping keys accepted by the metrics engine
GROUPING_DIMENSIONS: dict[str, list[str]] = {
    "race": ["race"],
    "gender": ["gender"],
    "age_group": ["age_group"],
    "incident_city": ["incident_city"],
    "intersection": INTERSECTION_DIMENSIONS,
}


def get_age_group(age: float) -> str:
    """Bucket an age into "< 25", "25-40" or "> 40"."""
    if age < 25:
        return "< 25"
    if age <= 40:
        return "25-40"
    return "> 40"


@dataclass
class DataSlice:
    """
    A slice of cases along a specific dimension.

    For cross-dimensional slices `value` is a tuple with one entry per
    dimension.
    """

    dimension: str  # e.g., "race", "race_x_gender_x_age_group"
    value: Any  # e.g., "Black", ("Black", "Male", "25-40")
    data: pd.DataFrame
    size: int
    percentage: float  # Percentage of the whole case set

    @property
    def label(self) -> str:
        if isinstance(self.value, tuple):
            return " / ".join(str(v) for v in self.value)
        return str(self.value)

    def __repr__(self) -> str:
        return f"DataSlice({self.dimension}={self.label}, size={self.size})"


class DataSlicer:
    """
    Slice case sets for disparity evaluation.

    Supports:
    - Categorical slicing: Group by discrete values
    - Range slicing: Group by value ranges
    - Cross-dimensional: Combinations of dimensions
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize data slicer.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.min_slice_size = self.config.fairness.min_slice_size

    def prepare_frame(self, cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> pd.DataFrame:
        """Build the aggregation frame for a case set, with derived grouping columns."""
        frame = cases_to_frame(cases)
        frame["age_group"] = frame["age_at_incident"].map(get_age_group)
        frame["received_year"] = [d.year for d in frame["received_date"]]
        return frame

    def slice_by_category(
        self,
        df: pd.DataFrame,
        dimension: str,
        min_slice_size: int | None = None,
    ) -> list[DataSlice]:
        """
        Slice data by categorical values.

        Args:
            df: Case frame (from prepare_frame)
            dimension: Column name to slice by
            min_slice_size: Minimum cases per slice (defaults to config)

        Returns:
            List of DataSlice objects, largest first
        """
        if dimension not in df.columns:
            logger.warning(f"Column '{dimension}' not found in case frame")
            return []

        min_size = self.min_slice_size if min_slice_size is None else min_slice_size
        slices = []
        total_size = len(df)

        for value, group in df.groupby(dimension, sort=True):
            if len(group) < min_size:
                continue

            slices.append(
                DataSlice(
                    dimension=dimension,
                    value=value,
                    data=group,
                    size=len(group),
                    percentage=len(group) / total_size * 100,
                )
            )

        # Sort by size (largest first); ties keep alphabetical order
        slices.sort(key=lambda s: s.size, reverse=True)

        logger.debug(
            f"Created {len(slices)} slices by '{dimension}'",
            extra={"dimension": dimension, "num_slices": len(slices)},
        )

        return slices

    def slice_by_ranges(
        self,
        df: pd.DataFrame,
        dimension: str,
        ranges: list[tuple[float, float, str]],
    ) -> list[DataSlice]:
        """
        Slice data by custom half-open [min, max) ranges.

        Args:
            df: Case frame
            dimension: Numeric column to slice by
            ranges: List of (min, max, label) tuples

        Returns:
            List of non-empty DataSlice objects, in range order
        """
        if dimension not in df.columns:
            logger.warning(f"Column '{dimension}' not found in case frame")
            return []

        slices = []
        total_size = len(df)

        for min_val, max_val, label in ranges:
            mask = (df[dimension] >= min_val) & (df[dimension] < max_val)
            group = df[mask]

            if len(group) == 0:
                continue

            slices.append(
                DataSlice(
                    dimension=f"{dimension}_range",
                    value=label,
                    data=group,
                    size=len(group),
                    percentage=len(group) / total_size * 100,
                )
            )

        return slices

    def cross_slice(
        self,
        df: pd.DataFrame,
        dimensions: list[str],
        min_slice_size: int | None = None,
    ) -> list[DataSlice]:
        """
        Create slices across multiple dimensions (intersection).

        Args:
            df: Case frame
            dimensions: Dimensions to combine
            min_slice_size: Minimum cases per slice (defaults to config)

        Returns:
            List of DataSlice objects, ordered by their key tuples

        Example:
            slices = slicer.cross_slice(frame, ["race", "gender", "age_group"])
        """
        missing = [dim for dim in dimensions if dim not in df.columns]
        if missing:
            logger.warning(f"Missing dimensions: {missing}")
            return []

        min_size = self.min_slice_size if min_slice_size is None else min_slice_size
        slices = []
        total_size = len(df)
        combined_dimension = "_x_".join(dimensions)

        for values, group in df.groupby(dimensions, sort=True):
            if len(group) < min_size:
                continue

            key = values if isinstance(values, tuple) else (values,)
            slices.append(
                DataSlice(
                    dimension=combined_dimension,
                    value=tuple(key),
                    data=group,
                    size=len(group),
                    percentage=len(group) / total_size * 100,
                )
            )

        logger.debug(
            f"Created {len(slices)} cross-dimensional slices",
            extra={"dimensions": dimensions, "num_slices": len(slices)},
        )

        return slices

    def slice_by_dimension(self, df: pd.DataFrame, dimension: str) -> list[DataSlice]:
        """
        Slice by one of the named grouping dimensions.

        Raises:
            ValueError: If the dimension is not a known grouping dimension
        """
        if dimension not in GROUPING_DIMENSIONS:
            raise ValueError(
                f"Invalid dimension: {dimension}. Must be one of: {sorted(GROUPING_DIMENSIONS)}"
            )

        columns = GROUPING_DIMENSIONS[dimension]
        if len(columns) == 1:
            return self.slice_by_category(df, columns[0])

        slices = self.cross_slice(df, columns)
        slices.sort(key=lambda s: s.size, reverse=True)
        return slices

    def age_histogram(self, df: pd.DataFrame, bin_width: int = 5) -> list[DataSlice]:
        """Slice ages into fixed-width bins ("20-24", "25-29", ...), ascending."""
        if df.empty:
            return []

        max_age = int(df["age_at_incident"].max())
        ranges = [
            (start, start + bin_width, f"{start}-{start + bin_width - 1}")
            for start in range(0, max_age + 1, bin_width)
        ]
        return self.slice_by_ranges(df, "age_at_incident", ranges)


# =============================================================================
# Convenience Functions
# =============================================================================


def slice_cases(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    dimension: str = "race",
    config: Settings | None = None,
) -> list[DataSlice]:
    """Convenience function to slice a case set by a named grouping dimension."""
    slicer = DataSlicer(config)
    return slicer.slice_by_dimension(slicer.prepare_frame(cases), dimension)
