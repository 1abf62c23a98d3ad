"""
Case Disparity Audit - Ingestion

Raw table -> canonical case set:
- Schema resolution across the two accepted header vocabularies
- Two-pass record normalization with median imputation
- Sentence-duration conversion to years

Components:
    - resolve_columns: Header reconciliation
    - RecordNormalizer: Type coercion, canonicalization, imputation
    - convert_sentence_to_years: (term, unit) -> years
    - CaseLoader / DatasetStore: File checks, parsing, current dataset
"""

from disparity_audit.ingest.errors import (
    EmptyInputError,
    IngestionError,
    InvalidFileError,
    NoValidRecordsError,
    SchemaError,
)
from disparity_audit.ingest.loader import (
    CaseLoader,
    DatasetStore,
    load_cases,
    parse_and_clean,
    read_table,
)
from disparity_audit.ingest.models import CanonicalCase, IngestionResult, cases_to_frame
from disparity_audit.ingest.normalizer import (
    NormalizationResult,
    RecordNormalizer,
    canonicalize_gender,
    canonicalize_race,
    normalize_cases,
)
from disparity_audit.ingest.schema import CANONICAL_FIELDS, REQUIRED_FIELDS, FieldSpec, resolve_columns
from disparity_audit.ingest.sentence import LIFE_SENTENCE_YEARS, convert_sentence_to_years

__all__ = [
    # Errors
    "IngestionError",
    "EmptyInputError",
    "InvalidFileError",
    "SchemaError",
    "NoValidRecordsError",
    # Models
    "CanonicalCase",
    "IngestionResult",
    "cases_to_frame",
    # Schema
    "FieldSpec",
    "CANONICAL_FIELDS",
    "REQUIRED_FIELDS",
    "resolve_columns",
    # Normalizer
    "RecordNormalizer",
    "NormalizationResult",
    "canonicalize_race",
    "canonicalize_gender",
    "normalize_cases",
    # Sentence
    "LIFE_SENTENCE_YEARS",
    "convert_sentence_to_years",
    # Loader
    "CaseLoader",
    "DatasetStore",
    "read_table",
    "parse_and_clean",
    "load_cases",
]
