"""
Case Disparity Audit - Disparity Metrics

Group-level disparity measures over canonical case sets:
- Data slicing by demographic and geographic dimensions
- Representation, disposition, sentencing and duration disparity
- Composite 0-100 fairness score and threshold findings

IMPORTANT: These measures describe observed differences between groups.
They are an audit aid, not evidence of cause.

Components:
    - DataSlicer: Categorical, range and intersectional slicing
    - DisparityEngine: Per-group statistics, scores, findings
"""

from disparity_audit.bias.data_slicer import (
    AGE_GROUPS,
    GROUPING_DIMENSIONS,
    DataSlice,
    DataSlicer,
    get_age_group,
    slice_cases,
)
from disparity_audit.bias.disparity_engine import (
    DisparityEngine,
    DisparityReport,
    DisparityScores,
    GroupStatistics,
    IntersectionalRow,
    compute_disparity_report,
    compute_intersectional_report,
)

__all__ = [
    # Data Slicer
    "AGE_GROUPS",
    "GROUPING_DIMENSIONS",
    "DataSlicer",
    "DataSlice",
    "get_age_group",
    "slice_cases",
    # Disparity Engine
    "DisparityEngine",
    "DisparityReport",
    "DisparityScores",
    "GroupStatistics",
    "IntersectionalRow",
    "compute_disparity_report",
    "compute_intersectional_report",
]
