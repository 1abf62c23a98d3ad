"""
Case Disparity Audit - Case Loader

Loads a delimited-text table of case outcomes into a canonical case set:
- File acceptance checks (extension, size, encoding)
- Table parsing with pandas (every cell read as text)
- Header resolution (Schema Resolver)
- Two-pass normalization (Record Normalizer)

Loading never raises for bad input: any IngestionError becomes an
IngestionResult with `error` set and no records.

Usage:
    loader = CaseLoader(config)
    result = loader.load_file("cases.csv")
    if result.success:
        cases = result.records

    # Keep a "current dataset" that is only replaced by successful loads
    store = DatasetStore()
    store.load_text(csv_text)
    store.records
"""

from __future__ import annotations

import io
import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

import pandas as pd

from disparity_audit.ingest.errors import EmptyInputError, IngestionError, InvalidFileError
from disparity_audit.ingest.models import CanonicalCase, IngestionResult
from disparity_audit.ingest.normalizer import RecordNormalizer
from disparity_audit.ingest.schema import get_unmatched_columns, resolve_columns
from disparity_audit.shared.config import Settings, get_config

logger = logging.getLogger(__name__)

_BYTE_ORDER_MARK = "\ufeff"


def read_table(text: str) -> pd.DataFrame:
    """
    Parse delimited text with a header row into a DataFrame of strings.

    Raises:
        EmptyInputError: If there is no header row or no data rows
        InvalidFileError: If the text is not a parseable table
    """
    text = text.lstrip(_BYTE_ORDER_MARK)
    if not text.strip():
        raise EmptyInputError()

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise EmptyInputError() from e
    except pd.errors.ParserError as e:
        raise InvalidFileError(f"Could not parse table: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]

    if len(df.columns) == 0 or len(df) == 0:
        raise EmptyInputError()

    return df


class CaseLoader:
    """
    Load case tables into canonical case sets.

    Each load is independent: no state from a previous load influences the
    next one.
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the loader.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.normalizer = RecordNormalizer(self.config)

    def load_text(self, text: str) -> IngestionResult:
        """Load a table from delimited text."""
        return self._run(lambda: read_table(text), source="text")

    def load_file(self, path: str | Path) -> IngestionResult:
        """Load a table from a file on disk after acceptance checks."""
        path = Path(path)
        return self._run(lambda: read_table(self.read_file(path)), source=str(path))

    def load_frame(self, df: pd.DataFrame) -> IngestionResult:
        """Load an already-parsed table."""

        def _frame() -> pd.DataFrame:
            if len(df.columns) == 0 or len(df) == 0:
                raise EmptyInputError()
            return df

        return self._run(_frame, source="dataframe")

    def read_file(self, path: Path) -> str:
        """
        Read a candidate file, enforcing extension and size limits.

        Raises:
            InvalidFileError: If the file is rejected
        """
        rules = self.config.ingestion
        allowed = {ext.lower() for ext in rules.allowed_extensions}

        if path.suffix.lower() not in allowed:
            raise InvalidFileError(
                f"Unsupported file type '{path.suffix}'. Expected one of: {sorted(allowed)}"
            )
        if not path.exists():
            raise InvalidFileError(f"File not found: {path}")

        max_bytes = int(rules.max_file_size_mb * 1024 * 1024)
        size = path.stat().st_size
        if size > max_bytes:
            raise InvalidFileError(
                f"File is too large ({size} bytes). Maximum size is {rules.max_file_size_mb:g} MB"
            )

        try:
            return path.read_bytes().decode(rules.encoding)
        except UnicodeDecodeError as e:
            raise InvalidFileError(f"File is not valid {rules.encoding} text: {e}") from e

    def _run(self, produce: Callable[[], pd.DataFrame], source: str) -> IngestionResult:
        start_time = time.time()
        rows_input = 0

        logger.info(f"Starting case load from {source}", extra={"source": source})

        try:
            df = produce()
            rows_input = len(df)

            mapping = resolve_columns(df.columns)
            unmatched = get_unmatched_columns(df.columns, mapping)
            if unmatched:
                logger.debug(f"Ignoring {len(unmatched)} unmapped columns", extra={"columns": unmatched})

            normalized = self.normalizer.normalize(df, mapping)

            result = IngestionResult(
                records=normalized.cases,
                error=None,
                rows_input=rows_input,
                median_age=normalized.median_age,
                median_duration_days=normalized.median_duration_days,
                duration_seconds=time.time() - start_time,
                drop_reasons=normalized.drop_reasons,
                transformations_applied=normalized.transformations_applied,
            )

            logger.info(
                f"Case load complete from {source}: {rows_input} -> {result.rows_output} rows",
                extra=result.to_dict(),
            )
            return result

        except IngestionError as e:
            logger.error(
                f"Case load failed from {source}: {e}",
                extra={"source": source, "error": str(e), "error_type": type(e).__name__},
            )
            return IngestionResult(
                records=(),
                error=str(e),
                rows_input=rows_input,
                duration_seconds=time.time() - start_time,
            )


class DatasetStore:
    """
    Holder of the current canonical case set.

    A successful load replaces the set wholesale; a failed load leaves the
    previous set in place. Readers get the tuple reference and never see a
    half-built set.
    """

    def __init__(self, loader: CaseLoader | None = None, config: Settings | None = None):
        self.loader = loader or CaseLoader(config)
        self._records: tuple[CanonicalCase, ...] = ()
        self._last_result: IngestionResult | None = None
        self._write_lock = threading.Lock()

    @property
    def records(self) -> tuple[CanonicalCase, ...]:
        """The current canonical case set (empty before the first successful load)."""
        return self._records

    @property
    def last_result(self) -> IngestionResult | None:
        return self._last_result

    @property
    def is_loaded(self) -> bool:
        return len(self._records) > 0

    def load_text(self, text: str) -> IngestionResult:
        """Load delimited text and make it current on success."""
        return self._apply(self.loader.load_text(text))

    def load_file(self, path: str | Path) -> IngestionResult:
        """Load a file and make it current on success."""
        return self._apply(self.loader.load_file(path))

    def clear(self) -> None:
        """Discard the current dataset."""
        with self._write_lock:
            self._records = ()
            self._last_result = None

    def _apply(self, result: IngestionResult) -> IngestionResult:
        with self._write_lock:
            if result.success:
                self._records = result.records
            self._last_result = result
        return result


# =============================================================================
# Convenience Functions
# =============================================================================


def parse_and_clean(text: str, config: Settings | None = None) -> IngestionResult:
    """
    Convenience function: delimited text -> ingestion result.

    The result carries either records or an error, never both.
    """
    return CaseLoader(config).load_text(text)


def load_cases(path: str | Path, config: Settings | None = None) -> IngestionResult:
    """Convenience function: file path -> ingestion result."""
    return CaseLoader(config).load_file(path)
