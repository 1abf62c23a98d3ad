"""
Case Disparity Audit - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- Case and CSV builders
"""

import os
from collections.abc import Callable, Generator
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from disparity_audit.ingest.models import CanonicalCase

# Set test environment
os.environ["DA_ENVIRONMENT"] = "dev"

SPANISH_HEADER = [
    "ID_CASO",
    "FECHA_RECEPCION",
    "RAZA",
    "GENERO",
    "EDAD_AL_INCIDENTE",
    "CATEGORIA_DELITO",
    "DISPOSICION_CARGO",
    "TIPO_SENTENCIA",
    "TERMINO_COMPROMISO",
    "UNIDAD_COMPROMISO",
    "DURACION_CASO_EN_DIAS",
    "CIUDAD_INCIDENTE",
]

DEFAULT_ROW = {
    "ID_CASO": "C-1",
    "FECHA_RECEPCION": "2020-03-15",
    "RAZA": "Black",
    "GENERO": "Male",
    "EDAD_AL_INCIDENTE": "30",
    "CATEGORIA_DELITO": "Narcotics",
    "DISPOSICION_CARGO": "Plea Of Guilty",
    "TIPO_SENTENCIA": "Prison",
    "TERMINO_COMPROMISO": "2",
    "UNIDAD_COMPROMISO": "Year(s)",
    "DURACION_CASO_EN_DIAS": "200",
    "CIUDAD_INCIDENTE": "Chicago",
}

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get the configs directory."""
    return project_root / "configs"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config() -> Any:
    """Get test configuration."""
    from disparity_audit.shared.config import get_config, reload_config

    # Ensure fresh config for tests
    reload_config("dev")
    return get_config("dev")


# =============================================================================
# Data Builders
# =============================================================================


@pytest.fixture
def make_case() -> Callable[..., CanonicalCase]:
    """Factory for canonical cases; keyword arguments override the defaults."""

    def _make(**overrides: Any) -> CanonicalCase:
        values: dict[str, Any] = {
            "case_id": "C-1",
            "participant_id": "",
            "received_date": date(2020, 3, 15),
            "race": "Black",
            "gender": "Male",
            "age_at_incident": 30,
            "offense_category": "Narcotics",
            "charge_disposition": "Plea Of Guilty",
            "sentence_type": "Prison",
            "commitment_term": "2",
            "commitment_unit": "Year(s)",
            "case_duration_days": 200,
            "incident_city": "Chicago",
            "sentencing_judge": "Unknown",
            "sentence_in_years": 2.0,
        }
        values.update(overrides)
        return CanonicalCase(**values)

    return _make


@pytest.fixture
def make_csv() -> Callable[..., str]:
    """
    Build CSV text with the Spanish header vocabulary.

    Each row is a dict of overrides on top of a valid default row.
    """

    def _make(rows: list[dict[str, str]], header: list[str] | None = None) -> str:
        columns = header or SPANISH_HEADER
        lines = [",".join(columns)]
        for i, overrides in enumerate(rows):
            row = {**DEFAULT_ROW, "ID_CASO": f"C-{i + 1}", **overrides}
            lines.append(",".join(row.get(col, "") for col in columns))
        return "\n".join(lines) + "\n"

    return _make


@pytest.fixture
def scenario_cases(make_case: Callable[..., CanonicalCase]) -> list[CanonicalCase]:
    """Two Black cases sentenced to 3 and 5 years, two White cases to 1 year each."""
    return [
        make_case(case_id="B1", race="Black", sentence_in_years=3.0),
        make_case(case_id="B2", race="Black", sentence_in_years=5.0),
        make_case(case_id="W1", race="White", sentence_in_years=1.0),
        make_case(case_id="W2", race="White", sentence_in_years=1.0),
    ]


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def cleanup_env() -> Generator[None, None, None]:
    """Clean up environment variables after each test."""
    original_env = os.environ.copy()
    yield
    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)
