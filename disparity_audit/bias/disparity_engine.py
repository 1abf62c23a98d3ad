"""
Case Disparity Audit - Disparity Metrics Engine

Evaluate disparity across demographic groups of a (possibly filtered) case set:
- Representation: share of cases per group
- Disposition disparity: outcome-rate spread (fairlearn MetricFrame)
- Sentencing disparity: ratio of largest to smallest mean sentence
- Duration disparity: spread of mean case duration
- Composite fairness score: mean of four 0-100 sub-scores

Thresholds are passed in explicitly on every call; the engine keeps no
threshold state of its own. Reports are rebuilt from scratch on every call.

Usage:
    engine = DisparityEngine(config)

    report = engine.compute_report(cases, thresholds, dimension="race")
    print(report.scores.composite)
    for finding in report.findings:
        print(finding.message)

    rows = engine.compute_intersectional_report(cases)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any

import pandas as pd
from fairlearn.metrics import MetricFrame, selection_rate

from disparity_audit.alerting.threshold_alerts import Finding, evaluate_thresholds, format_findings
from disparity_audit.bias.data_slicer import (
    AGE_GROUPS,
    INTERSECTION_DIMENSIONS,
    DataSlice,
    DataSlicer,
)
from disparity_audit.ingest.models import CanonicalCase
from disparity_audit.ingest.sentence import is_measurable_sentence
from disparity_audit.shared.config import DisparityThresholds, Settings, get_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupStatistics:
    """Per-group statistics for one grouping dimension."""

    group: str
    count: int
    share: float  # percent of the case set
    outcome_rate: float  # fraction in [0, 1]
    mean_sentence_years: float | None  # None when no measurable sentence
    sentenced_count: int
    mean_duration_days: float


@dataclass(frozen=True)
class DisparityScores:
    """0-100 sub-scores (100 = no measured disparity) and their mean."""

    representation: float = 100.0
    disposition: float = 100.0
    sentencing: float = 100.0
    duration: float = 100.0

    @property
    def composite(self) -> float:
        return (self.representation + self.disposition + self.sentencing + self.duration) / 4


@dataclass(frozen=True)
class DisparityReport:
    """Disparity measures for one grouping of a case set."""

    dimension: str
    total_cases: int
    groups: tuple[GroupStatistics, ...] = ()
    representation_deviation: float = 0.0  # max |share - 100/k|, percentage points
    disposition_spread: float = 0.0  # percentage points
    sentencing_ratio: float = 1.0
    duration_spread: float = 0.0  # days
    scores: DisparityScores = field(default_factory=DisparityScores)
    findings: tuple[Finding, ...] = ()

    @property
    def has_findings(self) -> bool:
        return len(self.findings) > 0

    def group(self, name: str) -> GroupStatistics | None:
        """Look up the statistics of one group by label."""
        return next((g for g in self.groups if g.group == name), None)

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "dimension": self.dimension,
            "total_cases": self.total_cases,
            "groups": [g.__dict__.copy() for g in self.groups],
            "representation_deviation": self.representation_deviation,
            "disposition_spread": self.disposition_spread,
            "sentencing_ratio": self.sentencing_ratio,
            "duration_spread": self.duration_spread,
            "scores": {
                "representation": self.scores.representation,
                "disposition": self.scores.disposition,
                "sentencing": self.scores.sentencing,
                "duration": self.scores.duration,
                "composite": self.scores.composite,
            },
            "findings": [f.to_dict() for f in self.findings],
        }


@dataclass(frozen=True)
class IntersectionalRow:
    """Statistics for one (race, gender, age group) combination."""

    race: str
    gender: str
    age_group: str
    count: int
    outcome_rate: float
    mean_sentence_years: float | None
    mean_duration_days: float


# =============================================================================
# Aggregation Helpers
# =============================================================================


def max_spread(values: list[float]) -> float:
    """max - min, or 0 with fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(max(values) - min(values))


def max_ratio(values: list[float]) -> float:
    """max / min over positive values, or 1 with fewer than two of them."""
    positive = [v for v in values if v > 0]
    if len(positive) < 2:
        return 1.0
    return float(max(positive) / min(positive))


def representation_deviation(shares: list[float]) -> float:
    """Largest distance (percentage points) of a group share from an even split."""
    if not shares:
        return 0.0
    expected = 100.0 / len(shares)
    return float(max(abs(s - expected) for s in shares))


def _mean_or_none(series: pd.Series) -> float | None:
    return float(series.mean()) if len(series) > 0 else None


# =============================================================================
# Disparity Engine
# =============================================================================


class DisparityEngine:
    """
    Compute disparity reports over case sets.

    Checks for:
    - Representation: Are groups represented within the expected band?
    - Disposition: Do groups have similar outcome rates?
    - Sentencing: Are mean sentences similar across groups?
    - Duration: Do cases take similar time across groups?
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize disparity engine.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.slicer = DataSlicer(self.config)
        self.scoring = self.config.fairness.scoring
        self.outcome_keywords = [k.lower() for k in self.config.fairness.outcome_keywords if k]

    def flag_outcomes(self, dispositions: pd.Series) -> pd.Series:
        """Mark dispositions containing any outcome keyword (case-insensitive) as 1, else 0."""
        if not self.outcome_keywords or dispositions.empty:
            return pd.Series(0, index=dispositions.index, dtype=int)
        pattern = "|".join(re.escape(k) for k in self.outcome_keywords)
        return dispositions.astype(str).str.lower().str.contains(pattern, regex=True).astype(int)

    def prepare_frame(self, cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> pd.DataFrame:
        """Aggregation frame with grouping columns and the outcome flag."""
        frame = self.slicer.prepare_frame(cases)
        frame["outcome"] = self.flag_outcomes(frame["charge_disposition"])
        return frame

    def compute_report(
        self,
        cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
        thresholds: DisparityThresholds,
        dimension: str = "race",
    ) -> DisparityReport:
        """
        Compute a disparity report.

        Args:
            cases: Case set (typically the output of apply_filter)
            thresholds: Alert thresholds supplied by the caller
            dimension: Grouping dimension (race, gender, age_group,
                       incident_city, intersection)

        Returns:
            DisparityReport with per-group statistics, scores and findings

        Raises:
            ValueError: If the dimension is not a known grouping dimension
        """
        frame = self.prepare_frame(cases)
        slices = self.slicer.slice_by_dimension(frame, dimension)

        groups = self._group_statistics(slices)
        disposition_spread = self._disposition_spread(slices)

        report = DisparityReport(
            dimension=dimension,
            total_cases=len(frame),
            groups=tuple(groups),
            representation_deviation=representation_deviation([g.share for g in groups]),
            disposition_spread=disposition_spread,
            sentencing_ratio=max_ratio(
                [g.mean_sentence_years for g in groups if g.mean_sentence_years is not None]
            ),
            duration_spread=max_spread([g.mean_duration_days for g in groups]),
        )
        report = replace(report, scores=self.score(report))
        report = replace(report, findings=tuple(evaluate_thresholds(report, thresholds)))

        logger.info(
            f"Disparity report by {dimension}: {len(groups)} groups, "
            f"composite score {report.scores.composite:.1f}, {len(report.findings)} findings",
            extra={
                "dimension": dimension,
                "total_cases": report.total_cases,
                "composite_score": report.scores.composite,
                "findings": len(report.findings),
            },
        )

        return report

    def group_statistics(
        self,
        cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
        dimension: str = "race",
    ) -> list[GroupStatistics]:
        """Per-group statistics only, largest group first (no scores or findings)."""
        frame = self.prepare_frame(cases)
        return self._group_statistics(self.slicer.slice_by_dimension(frame, dimension))

    def score(self, report: DisparityReport) -> DisparityScores:
        """Map each deviation measure to a 0-100 sub-score (deviation 0 -> 100)."""
        s = self.scoring
        return DisparityScores(
            representation=max(0.0, 100.0 - report.representation_deviation * s.representation_penalty),
            disposition=max(0.0, 100.0 - report.disposition_spread * s.disposition_penalty),
            sentencing=max(0.0, 100.0 - (report.sentencing_ratio - 1.0) * s.sentencing_penalty),
            duration=max(0.0, 100.0 - report.duration_spread / s.duration_days_per_point),
        )

    def compute_intersectional_report(
        self,
        cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    ) -> list[IntersectionalRow]:
        """
        Statistics per (race, gender, age group) combination.

        Returns:
            Rows ordered by race, gender, then age group (youngest first)
        """
        frame = self.prepare_frame(cases)
        rows = []

        for slice_obj in self.slicer.cross_slice(frame, INTERSECTION_DIMENSIONS):
            race, gender, age_group = slice_obj.value
            data = slice_obj.data
            sentences = self._measurable_sentences(data)
            rows.append(
                IntersectionalRow(
                    race=race,
                    gender=gender,
                    age_group=age_group,
                    count=slice_obj.size,
                    outcome_rate=float(data["outcome"].mean()),
                    mean_sentence_years=_mean_or_none(sentences),
                    mean_duration_days=float(data["case_duration_days"].mean()),
                )
            )

        rows.sort(key=lambda r: (r.race, r.gender, AGE_GROUPS.index(r.age_group)))
        return rows

    def disposition_breakdown(
        self,
        cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
        dimension: str = "race",
        limit: int | None = None,
    ) -> pd.DataFrame:
        """
        Case counts per (disposition, group) for the first `limit` distinct dispositions.

        Returns:
            DataFrame indexed by disposition with one column per group
        """
        limit = self.config.fairness.disposition_breakdown_limit if limit is None else limit
        frame = self.prepare_frame(cases)
        if frame.empty:
            return pd.DataFrame()

        slices = self.slicer.slice_by_dimension(frame, dimension)
        labels = self._group_labels(slices)
        dispositions = list(dict.fromkeys(frame["charge_disposition"]))[:limit]

        subset = frame.loc[labels.index]
        subset = subset[subset["charge_disposition"].isin(dispositions)]
        table = pd.crosstab(subset["charge_disposition"], labels.loc[subset.index])
        table = table.reindex(index=dispositions, fill_value=0)
        table.index.name = "charge_disposition"
        table.columns.name = dimension
        return table

    def create_report_text(self, report: DisparityReport) -> str:
        """
        Create a human-readable disparity report.

        Args:
            report: DisparityReport to summarize

        Returns:
            Formatted report string
        """
        lines = []
        lines.append("=" * 80)
        lines.append(f"DISPARITY REPORT - grouped by {report.dimension}")
        lines.append("=" * 80)
        lines.append(f"Cases analysed: {report.total_cases}")
        lines.append(f"Groups: {len(report.groups)}")
        lines.append("")

        lines.append("GROUPS")
        lines.append("-" * 80)
        for g in report.groups:
            sentence = f"{g.mean_sentence_years:.2f}y" if g.mean_sentence_years is not None else "n/a"
            lines.append(
                f"  {g.group:<30} {g.count:>6} cases  {g.share:5.1f}%  "
                f"outcome {g.outcome_rate:6.1%}  sentence {sentence:>8}  "
                f"duration {g.mean_duration_days:7.0f}d"
            )
        lines.append("")

        lines.append("SCORES")
        lines.append("-" * 80)
        lines.append(f"  Representation: {report.scores.representation:6.1f}")
        lines.append(f"  Disposition:    {report.scores.disposition:6.1f}")
        lines.append(f"  Sentencing:     {report.scores.sentencing:6.1f}")
        lines.append(f"  Duration:       {report.scores.duration:6.1f}")
        lines.append(f"  Composite:      {report.scores.composite:6.1f}")
        lines.append("")

        lines.append("FINDINGS")
        lines.append("-" * 80)
        lines.append(format_findings(list(report.findings)))
        lines.append("=" * 80)

        return "\n".join(lines)

    # =========================================================================
    # Private Methods
    # =========================================================================

    @staticmethod
    def _measurable_sentences(data: pd.DataFrame) -> pd.Series:
        sentences = data["sentence_in_years"]
        return sentences[sentences.map(is_measurable_sentence).astype(bool)].astype(float)

    @staticmethod
    def _group_labels(slices: list[DataSlice]) -> pd.Series:
        """Series mapping each case row (by frame index) to its group label."""
        if not slices:
            return pd.Series(dtype=object)
        return pd.concat([pd.Series(s.label, index=s.data.index) for s in slices])

    def _group_statistics(self, slices: list[DataSlice]) -> list[GroupStatistics]:
        groups = []
        for slice_obj in slices:
            data = slice_obj.data
            sentences = self._measurable_sentences(data)
            groups.append(
                GroupStatistics(
                    group=slice_obj.label,
                    count=slice_obj.size,
                    share=slice_obj.percentage,
                    outcome_rate=float(data["outcome"].mean()),
                    mean_sentence_years=_mean_or_none(sentences),
                    sentenced_count=len(sentences),
                    mean_duration_days=float(data["case_duration_days"].mean()),
                )
            )
        return groups

    def _disposition_spread(self, slices: list[DataSlice]) -> float:
        """
        Outcome-rate spread across groups, in percentage points.

        Uses Fairlearn's MetricFrame over the outcome flag; with y_true ==
        y_pred the per-group selection rate is the group's outcome rate.
        """
        if len(slices) < 2:
            return 0.0

        labels = self._group_labels(slices)
        outcomes = pd.concat([s.data["outcome"] for s in slices]).astype(int)

        mf = MetricFrame(
            metrics={"outcome_rate": selection_rate},
            y_true=outcomes,
            y_pred=outcomes,  # Data-level check (no model)
            sensitive_features=labels.rename("group"),
        )

        logger.debug(
            f"Fairlearn MetricFrame by group:\n{mf.by_group}",
            extra={"metric": "outcome_rate"},
        )

        return float(mf.difference(method="between_groups")["outcome_rate"]) * 100


# =============================================================================
# Convenience Functions
# =============================================================================


def compute_disparity_report(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    thresholds: DisparityThresholds | None = None,
    dimension: str | None = None,
    config: Settings | None = None,
) -> DisparityReport:
    """
    Convenience function to compute a disparity report.

    Falls back to the configured thresholds and default dimension when they
    are not given.
    """
    config = config or get_config()
    thresholds = thresholds or config.fairness.thresholds
    dimension = dimension or config.fairness.default_dimension
    return DisparityEngine(config).compute_report(cases, thresholds, dimension)


def compute_intersectional_report(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    config: Settings | None = None,
) -> list[IntersectionalRow]:
    """Convenience function for the per (race, gender, age group) report."""
    return DisparityEngine(config).compute_intersectional_report(cases)
