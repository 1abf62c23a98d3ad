"""
Case Disparity Audit - Ingestion Errors

Every error here is terminal for the current load attempt. Row-level
problems (bad date, unknown demographic, out-of-range numbers) are not
errors; the normalizer recovers from them by dropping or imputing.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for failures that abort a dataset load."""


class InvalidFileError(IngestionError):
    """Raised when a file is rejected before parsing (extension, size, encoding)."""


class EmptyInputError(IngestionError):
    """Raised when the table has no header row or no data rows."""

    def __init__(self, message: str = "The input table is empty or has no header row"):
        super().__init__(message)


class SchemaError(IngestionError):
    """Raised when required canonical fields cannot be resolved to input headers."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required columns: {', '.join(self.missing_fields)}")


class NoValidRecordsError(IngestionError):
    """Raised when every row is dropped during normalization."""

    def __init__(self, rows_input: int = 0):
        self.rows_input = rows_input
        super().__init__(f"No valid records remained after cleaning {rows_input} input rows")
