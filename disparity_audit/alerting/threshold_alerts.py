"""
Case Disparity Audit - Threshold Alerting

Stateless mapping from a DisparityReport and a set of thresholds to an
ordered list of findings, one per violated rule:

1. Representation: one finding per group whose share of cases falls outside
   the [under%, over%] band (groups in report order)
2. Disposition: outcome-rate spread above the percentage-point threshold
3. Sentencing: largest/smallest mean sentence ratio above the multiplier
4. Duration: mean case-duration spread above the day threshold

No finding is produced when no threshold is crossed.

Usage:
    findings = evaluate_thresholds(report, thresholds)
    for finding in findings:
        print(finding.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from disparity_audit.shared.config import DisparityThresholds

if TYPE_CHECKING:
    from disparity_audit.bias.disparity_engine import DisparityReport, GroupStatistics


class DisparityMetric(StrEnum):
    """Disparity measure a finding refers to."""

    REPRESENTATION = "representation"
    DISPOSITION = "disposition"
    SENTENCING = "sentencing"
    DURATION = "duration"


class FindingSeverity(StrEnum):
    """Finding severity."""

    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Finding:
    """A single violated threshold rule."""

    metric: DisparityMetric
    severity: FindingSeverity
    message: str
    observed: float
    threshold: float
    groups: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert finding to dictionary."""
        return {
            "metric": self.metric.value,
            "severity": self.severity.value,
            "message": self.message,
            "observed": self.observed,
            "threshold": self.threshold,
            "groups": list(self.groups),
        }


def _severity(excess: float, allowance: float, multiplier: float) -> FindingSeverity:
    """CRITICAL once the excess reaches `multiplier` times the allowed amount."""
    if allowance > 0 and excess >= multiplier * allowance:
        return FindingSeverity.CRITICAL
    return FindingSeverity.WARNING


def _extremes(
    groups: list[GroupStatistics], value: str
) -> tuple[GroupStatistics, GroupStatistics]:
    ranked = sorted(groups, key=lambda g: getattr(g, value))
    return ranked[-1], ranked[0]


def evaluate_thresholds(
    report: DisparityReport,
    thresholds: DisparityThresholds,
) -> list[Finding]:
    """
    Compare a disparity report against thresholds.

    Args:
        report: Report from the disparity metrics engine (its own findings are ignored)
        thresholds: Threshold configuration to apply

    Returns:
        Ordered list of findings (empty when nothing is violated)
    """
    findings: list[Finding] = []
    groups = list(report.groups)
    label = report.dimension.replace("_", " ")

    # 1. Representation band
    for group in groups:
        if group.share < thresholds.representation_under:
            bound = thresholds.representation_under
        elif group.share > thresholds.representation_over:
            bound = thresholds.representation_over
        else:
            continue

        findings.append(
            Finding(
                metric=DisparityMetric.REPRESENTATION,
                severity=FindingSeverity.WARNING,
                message=(
                    f"{group.group} accounts for {group.share:.1f}% of cases, outside the "
                    f"expected range ({thresholds.representation_under:g}%-"
                    f"{thresholds.representation_over:g}%)"
                ),
                observed=group.share,
                threshold=bound,
                groups=(group.group,),
            )
        )

    # 2. Disposition spread (percentage points)
    if len(groups) > 1 and report.disposition_spread > thresholds.disposition_spread:
        high, low = _extremes(groups, "outcome_rate")
        findings.append(
            Finding(
                metric=DisparityMetric.DISPOSITION,
                severity=_severity(
                    report.disposition_spread,
                    thresholds.disposition_spread,
                    thresholds.critical_multiplier,
                ),
                message=(
                    f"Outcome rates differ by {report.disposition_spread:.1f} points across {label} "
                    f"groups ({high.group}: {high.outcome_rate:.1%}, {low.group}: {low.outcome_rate:.1%}; "
                    f"threshold {thresholds.disposition_spread:g} points)"
                ),
                observed=report.disposition_spread,
                threshold=thresholds.disposition_spread,
                groups=(high.group, low.group),
            )
        )

    # 3. Sentencing ratio
    if report.sentencing_ratio > thresholds.sentencing_ratio:
        sentenced = [g for g in groups if g.mean_sentence_years]
        high, low = _extremes(sentenced, "mean_sentence_years")
        findings.append(
            Finding(
                metric=DisparityMetric.SENTENCING,
                severity=_severity(
                    report.sentencing_ratio - 1,
                    thresholds.sentencing_ratio - 1,
                    thresholds.critical_multiplier,
                ),
                message=(
                    f"Mean sentence for {high.group} ({high.mean_sentence_years:.2f} years) is "
                    f"{report.sentencing_ratio:.2f}x that of {low.group} "
                    f"({low.mean_sentence_years:.2f} years; threshold {thresholds.sentencing_ratio:g}x)"
                ),
                observed=report.sentencing_ratio,
                threshold=thresholds.sentencing_ratio,
                groups=(high.group, low.group),
            )
        )

    # 4. Duration spread (days)
    if len(groups) > 1 and report.duration_spread > thresholds.duration_spread:
        high, low = _extremes(groups, "mean_duration_days")
        findings.append(
            Finding(
                metric=DisparityMetric.DURATION,
                severity=_severity(
                    report.duration_spread,
                    thresholds.duration_spread,
                    thresholds.critical_multiplier,
                ),
                message=(
                    f"Mean case duration differs by {report.duration_spread:.0f} days across {label} "
                    f"groups ({high.group}: {high.mean_duration_days:.0f}, "
                    f"{low.group}: {low.mean_duration_days:.0f}; threshold "
                    f"{thresholds.duration_spread:g} days)"
                ),
                observed=report.duration_spread,
                threshold=thresholds.duration_spread,
                groups=(high.group, low.group),
            )
        )

    return findings


def format_findings(findings: list[Finding]) -> str:
    """Render findings as a bulleted plain-text list."""
    if not findings:
        return "No thresholds crossed."
    return "\n".join(f"  - [{f.severity.value}] {f.message}" for f in findings)
