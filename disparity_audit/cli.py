"""
Case Disparity Audit - Command Line

Runs one audit over a CSV file of case outcomes and prints the report.

Usage:
    python -m disparity_audit cases.csv
    python -m disparity_audit cases.csv --dimension gender --year-min 2015 --year-max 2020
    python -m disparity_audit cases.csv --offense Narcotics --export-summary summary.csv
    python -m disparity_audit cases.csv --intersectional --alert

Exit Codes:
    0   Report produced
    1   Dataset rejected (see the error message)
    2   Invalid arguments
"""

from __future__ import annotations

import argparse
import logging
import sys

from disparity_audit.alerting.alert_manager import AlertManager
from disparity_audit.analysis.export import export_cases_csv, export_group_summary_csv
from disparity_audit.analysis.filter_engine import ALL, FilterSpec, apply_filter
from disparity_audit.analysis.summary import create_data_summary, describe_dataset
from disparity_audit.bias.data_slicer import GROUPING_DIMENSIONS
from disparity_audit.bias.disparity_engine import DisparityEngine
from disparity_audit.ingest.loader import CaseLoader
from disparity_audit.shared.config import Settings, get_config, get_default_thresholds

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INGESTION_FAILED = 1
EXIT_INVALID_ARGS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="disparity_audit",
        description="Audit a table of criminal-case outcomes for group disparities.",
    )
    parser.add_argument("file", help="CSV file with one case per row")
    parser.add_argument("--env", choices=["dev", "prod"], default=None, help="Configuration environment")
    parser.add_argument(
        "--dimension",
        choices=sorted(GROUPING_DIMENSIONS),
        default=None,
        help="Grouping dimension (default from configuration)",
    )
    parser.add_argument("--year-min", type=int, default=None, help="First received year to include")
    parser.add_argument("--year-max", type=int, default=None, help="Last received year to include")
    parser.add_argument("--offense", default=ALL, help="Offense category to keep (default: All)")
    parser.add_argument("--city", default=ALL, help="Incident city to keep (default: All)")
    parser.add_argument("--intersectional", action="store_true", help="Also print race x gender x age rows")
    parser.add_argument("--digest", action="store_true", help="Also print the plain-text data digest")
    parser.add_argument("--alert", action="store_true", help="Dispatch findings through the alert manager")
    parser.add_argument("--export-cases", metavar="PATH", help="Write the filtered cases as CSV")
    parser.add_argument("--export-summary", metavar="PATH", help="Write the per-group summary as CSV")
    return parser


def setup_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )


def run(args: argparse.Namespace, config: Settings) -> int:
    """Execute one audit; returns the process exit code."""
    result = CaseLoader(config).load_file(args.file)
    if not result.success:
        print(f"Dataset rejected: {result.error}", file=sys.stderr)
        return EXIT_INGESTION_FAILED

    cases = result.records
    filter_spec = FilterSpec.full_extent(cases, config)
    year_min = args.year_min if args.year_min is not None else filter_spec.year_range[0]
    year_max = args.year_max if args.year_max is not None else filter_spec.year_range[1]
    try:
        filter_spec = (
            filter_spec.with_years(year_min, year_max)
            .with_offense(args.offense)
            .with_city(args.city)
        )
    except ValueError as e:
        print(f"Invalid filter: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    filtered = apply_filter(cases, filter_spec)
    dimension = args.dimension or config.fairness.default_dimension

    engine = DisparityEngine(config)
    report = engine.compute_report(filtered, get_default_thresholds(config), dimension)

    overview = describe_dataset(cases)
    print(
        f"Loaded {overview.total_cases} cases ({overview.date_range}), "
        f"{result.rows_dropped} rows dropped; {len(filtered)} after filtering"
    )
    print(engine.create_report_text(report))

    if args.intersectional:
        print("\nINTERSECTIONAL (race / gender / age group)")
        for row in engine.compute_intersectional_report(filtered):
            sentence = f"{row.mean_sentence_years:.2f}y" if row.mean_sentence_years is not None else "n/a"
            print(
                f"  {row.race} / {row.gender} / {row.age_group}: {row.count} cases, "
                f"outcome {row.outcome_rate:.1%}, sentence {sentence}, "
                f"duration {row.mean_duration_days:.0f}d"
            )

    if args.digest:
        print()
        print(create_data_summary(filtered))

    if args.alert:
        AlertManager(config).dispatch_findings(report.findings, dimension)

    if args.export_cases:
        export_cases_csv(filtered, args.export_cases)
    if args.export_summary:
        export_group_summary_csv(filtered, dimension, args.export_summary, config)

    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config(args.env)
    setup_logging(config)
    return run(args, config)


if __name__ == "__main__":
    sys.exit(main())
