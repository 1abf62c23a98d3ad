"""
Case Disparity Audit - Schema Resolver

Maps the headers of an input table onto the canonical case fields.

Two header vocabularies are accepted. The primary vocabulary is the one used
by the public case-outcome exports (ID_CASO, FECHA_RECEPCION, ...); the
alternate vocabulary is the English one (CASE_ID, RECEIVED_DATE, ...). For
each canonical field the primary name is tried first, then the alternate.
Comparison ignores case and surrounding whitespace.

Resolution is all-or-nothing: either every required field resolves and a
canonical -> header mapping is returned, or SchemaError lists every field
that could not be resolved.

Usage:
    mapping = resolve_columns(["CASE_ID", "RECEIVED_DATE", ...])
    mapping["received_date"]  # -> "RECEIVED_DATE"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from disparity_audit.ingest.errors import EmptyInputError, SchemaError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    """A canonical field and the input headers accepted for it, in preference order."""

    name: str
    aliases: tuple[str, ...]
    required: bool = True


# Ordered (canonical field, accepted headers) entries.
CANONICAL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("case_id", ("ID_CASO", "CASE_ID")),
    FieldSpec("participant_id", ("ID_PARTICIPANTE_CASO", "CASE_PARTICIPANT_ID"), required=False),
    FieldSpec("received_date", ("FECHA_RECEPCION", "RECEIVED_DATE")),
    FieldSpec("race", ("RAZA", "RACE")),
    FieldSpec("gender", ("GENERO", "GENDER")),
    FieldSpec("age_at_incident", ("EDAD_AL_INCIDENTE", "AGE_AT_INCIDENT")),
    FieldSpec("offense_category", ("CATEGORIA_DELITO", "OFFENSE_CATEGORY"), required=False),
    FieldSpec("charge_disposition", ("DISPOSICION_CARGO", "CHARGE_DISPOSITION")),
    FieldSpec("sentence_type", ("TIPO_SENTENCIA", "SENTENCE_TYPE")),
    FieldSpec("commitment_term", ("TERMINO_COMPROMISO", "COMMITMENT_TERM")),
    FieldSpec("commitment_unit", ("UNIDAD_COMPROMISO", "COMMITMENT_UNIT")),
    FieldSpec("case_duration_days", ("DURACION_CASO_EN_DIAS", "LENGTH_OF_CASE_in_Days")),
    FieldSpec("incident_city", ("CIUDAD_INCIDENTE", "INCIDENT_CITY"), required=False),
    FieldSpec("sentencing_judge", ("JUEZ_SENTENCIA", "SENTENCE_JUDGE"), required=False),
)

REQUIRED_FIELDS: tuple[str, ...] = tuple(f.name for f in CANONICAL_FIELDS if f.required)


def _normalize_header(header: str) -> str:
    return str(header).strip().lower()


def resolve_columns(
    headers: Iterable[str],
    fields: tuple[FieldSpec, ...] = CANONICAL_FIELDS,
) -> dict[str, str]:
    """
    Resolve canonical fields to the actual headers of an input table.

    Args:
        headers: Header row of the input table
        fields: Canonical field specs (defaults to CANONICAL_FIELDS)

    Returns:
        Mapping of canonical field name -> input header. Optional fields that
        are absent from the input are left out of the mapping.

    Raises:
        EmptyInputError: If there are no headers
        SchemaError: If any required field cannot be resolved
    """
    header_list = [h for h in headers if str(h).strip()]
    if not header_list:
        raise EmptyInputError()

    # First occurrence wins when two headers normalize to the same key
    lookup: dict[str, str] = {}
    for header in header_list:
        lookup.setdefault(_normalize_header(header), header)

    mapping: dict[str, str] = {}
    missing: list[str] = []

    for spec in fields:
        resolved = next(
            (lookup[_normalize_header(alias)] for alias in spec.aliases if _normalize_header(alias) in lookup),
            None,
        )
        if resolved is not None:
            mapping[spec.name] = resolved
        elif spec.required:
            missing.append(spec.name)

    if missing:
        logger.warning(
            f"Schema resolution failed: {len(missing)} required fields missing",
            extra={"missing_fields": missing, "headers": header_list},
        )
        raise SchemaError(missing)

    logger.debug(
        f"Resolved {len(mapping)} canonical fields",
        extra={"mapping": mapping},
    )
    return mapping


def get_unmatched_columns(headers: Iterable[str], mapping: dict[str, str]) -> list[str]:
    """Return input headers that did not map to any canonical field."""
    used = set(mapping.values())
    return [h for h in headers if h not in used]
