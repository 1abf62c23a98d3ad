"""
Case Disparity Audit - Tabular Export

Flat CSV serialization of either the (filtered) case set or a per-group
summary. Only the data is produced here; delivering it (download, file,
attachment) is up to the caller. Values containing the delimiter, quotes
or line breaks are quoted by pandas.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from disparity_audit.bias.disparity_engine import DisparityEngine
from disparity_audit.ingest.models import CASE_COLUMNS, CanonicalCase
from disparity_audit.shared.config import Settings

logger = logging.getLogger(__name__)

GROUP_SUMMARY_COLUMNS = [
    "group",
    "total_cases",
    "outcome_rate",
    "mean_sentence_years",
    "mean_duration_days",
]


def cases_table(cases: tuple[CanonicalCase, ...] | list[CanonicalCase]) -> pd.DataFrame:
    """One row per case, dates as ISO strings, absent sentences empty."""
    return pd.DataFrame([case.to_dict() for case in cases], columns=list(CASE_COLUMNS))


def group_summary_table(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    dimension: str = "race",
    config: Settings | None = None,
) -> pd.DataFrame:
    """One row per group: size, outcome rate, mean sentence and mean duration."""
    groups = DisparityEngine(config).group_statistics(cases, dimension)
    table = pd.DataFrame(
        [
            {
                "group": g.group,
                "total_cases": g.count,
                "outcome_rate": round(g.outcome_rate, 4),
                "mean_sentence_years": None if g.mean_sentence_years is None else round(g.mean_sentence_years, 2),
                "mean_duration_days": round(g.mean_duration_days, 1),
            }
            for g in groups
        ],
        columns=GROUP_SUMMARY_COLUMNS,
    )
    return table


def export_cases_csv(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    path: str | Path | None = None,
) -> str:
    """
    Serialize the case set to CSV.

    Args:
        cases: Cases to export
        path: Optional file to write as well

    Returns:
        CSV text (header row included)
    """
    return _write(cases_table(cases), path, kind="cases")


def export_group_summary_csv(
    cases: tuple[CanonicalCase, ...] | list[CanonicalCase],
    dimension: str = "race",
    path: str | Path | None = None,
    config: Settings | None = None,
) -> str:
    """Serialize the per-group summary to CSV."""
    return _write(group_summary_table(cases, dimension, config), path, kind=f"summary_by_{dimension}")


def _write(table: pd.DataFrame, path: str | Path | None, kind: str) -> str:
    text = table.to_csv(index=False, lineterminator="\n")
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
        logger.info(f"Exported {len(table)} rows to {path}", extra={"export_kind": kind, "rows": len(table)})
    return text
