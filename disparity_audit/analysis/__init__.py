"""
Case Disparity Audit - Analysis Surfaces

Consumer-facing operations over a canonical case set:
- Filter Engine (year range, offense category, incident city)
- Dataset overview, age histogram, assistant digest
- CSV export of cases or per-group summaries
"""

from disparity_audit.analysis.export import (
    export_cases_csv,
    export_group_summary_csv,
    group_summary_table,
)
from disparity_audit.analysis.filter_engine import (
    FilterSpec,
    apply_filter,
    filter_options,
    year_extent,
)
from disparity_audit.analysis.summary import (
    DatasetOverview,
    age_histogram,
    create_data_summary,
    describe_dataset,
)

__all__ = [
    # Filter Engine
    "FilterSpec",
    "apply_filter",
    "filter_options",
    "year_extent",
    # Summary
    "DatasetOverview",
    "describe_dataset",
    "age_histogram",
    "create_data_summary",
    # Export
    "export_cases_csv",
    "export_group_summary_csv",
    "group_summary_table",
]
