"""
Tests for Record Normalizer

Tests the two-pass normalization: median statistics, date parsing,
demographic canonicalization, default substitution and imputation.
"""

from datetime import date

import pandas as pd
import pytest

from disparity_audit.ingest.errors import NoValidRecordsError
from disparity_audit.ingest.loader import read_table
from disparity_audit.ingest.normalizer import (
    RecordNormalizer,
    canonicalize_gender,
    canonicalize_race,
    normalize_cases,
)
from disparity_audit.ingest.schema import resolve_columns
from disparity_audit.ingest.sentence import LIFE_SENTENCE_YEARS
from disparity_audit.shared.config import NormalizationConfig


def _normalize(csv_text, config=None):
    df = read_table(csv_text)
    return RecordNormalizer(config).normalize(df, resolve_columns(df.columns))


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Hispanic-American", "Hispanic"),
        ("White Hispanic", "Hispanic"),
        ("BLACK", "Black"),
        ("white", "White"),
        ("Asian / Pacific Islander", "Asian"),
        ("American Indian", "American Indian"),
        ("other", "Other"),
        ("N/A", "Unknown"),
        ("n/a", "Unknown"),
        ("", "Unknown"),
        (None, "Unknown"),
    ],
)
def test_canonicalize_race(raw, expected):
    """Test race canonicalization rules."""
    assert canonicalize_race(raw) == expected


def test_canonicalize_race_custom_order():
    """Test the first label in the configured order wins."""
    rules = NormalizationConfig(known_races=["White", "Hispanic"])
    assert canonicalize_race("White Hispanic", rules) == "White"


def test_canonicalize_gender():
    """Test gender keeps its text except for N/A and empty values."""
    assert canonicalize_gender("Female") == "Female"
    assert canonicalize_gender(" Male ") == "Male"
    assert canonicalize_gender("N/A") == "Unknown"
    assert canonicalize_gender("") == "Unknown"


# ---------------------------------------------------------------------------
# Statistics pass
# ---------------------------------------------------------------------------


def test_median_age_even_count(make_csv):
    """Test the median of an even-sized set is the mean of the middle pair."""
    text = make_csv([{"EDAD_AL_INCIDENTE": a} for a in ["20", "22", "24", "26"]])
    result = _normalize(text)
    assert result.median_age == 23.0


def test_out_of_range_age_is_imputed(make_csv):
    """Test an age of 150 is excluded from the median and replaced by it."""
    text = make_csv([{"EDAD_AL_INCIDENTE": a} for a in ["20", "22", "24", "26", "150"]])
    result = _normalize(text)

    assert result.median_age == 23.0
    assert [c.age_at_incident for c in result.cases] == [20, 22, 24, 26, 23]


@pytest.mark.parametrize("bad_age", ["0", "-3", "120", "abc", ""])
def test_invalid_ages_are_imputed(make_csv, bad_age):
    """Test ages outside (0, 120) and unparseable ages take the median."""
    text = make_csv([{"EDAD_AL_INCIDENTE": "40"}, {"EDAD_AL_INCIDENTE": bad_age}])
    result = _normalize(text)
    assert result.cases[1].age_at_incident == 40


def test_median_duration_and_imputation(make_csv):
    """Test negative and unparseable durations are imputed with the median."""
    text = make_csv(
        [
            {"DURACION_CASO_EN_DIAS": "100"},
            {"DURACION_CASO_EN_DIAS": "0"},
            {"DURACION_CASO_EN_DIAS": "-5"},
            {"DURACION_CASO_EN_DIAS": "N/A"},
        ]
    )
    result = _normalize(text)

    assert result.median_duration_days == 50.0
    assert [c.case_duration_days for c in result.cases] == [100, 0, 50, 50]


@pytest.mark.parametrize("bad_duration", ["inf", "-inf", "1e400", "1e30", "nan"])
def test_non_finite_and_huge_durations_are_imputed(make_csv, bad_duration):
    """Test infinite, overflowing and oversized durations are invalid in both passes."""
    text = make_csv([{"DURACION_CASO_EN_DIAS": bad_duration}, {"DURACION_CASO_EN_DIAS": "100"}])
    result = _normalize(text)

    assert result.median_duration_days == 100.0
    assert [c.case_duration_days for c in result.cases] == [100, 100]


def test_only_huge_durations_use_fallback(make_csv, test_config):
    """Test the fallback median applies when every duration is out of range."""
    text = make_csv([{"DURACION_CASO_EN_DIAS": "inf"}, {"DURACION_CASO_EN_DIAS": "1e30"}])
    result = _normalize(text, test_config)

    fallback = test_config.normalization.fallback_median_duration_days
    assert result.median_duration_days == float(fallback)
    assert all(c.case_duration_days == fallback for c in result.cases)


def test_fallback_medians(make_csv, test_config):
    """Test fallback constants when no valid age or duration exists."""
    text = make_csv([{"EDAD_AL_INCIDENTE": "N/A", "DURACION_CASO_EN_DIAS": "x"}])
    result = _normalize(text, test_config)

    assert result.median_age == test_config.normalization.fallback_median_age
    assert result.cases[0].age_at_incident == test_config.normalization.fallback_median_age
    assert result.cases[0].case_duration_days == test_config.normalization.fallback_median_duration_days


def test_numbers_with_separators(make_csv):
    """Test thousands separators and decimals are accepted."""
    text = make_csv([{"DURACION_CASO_EN_DIAS": '"1,200"'}, {"EDAD_AL_INCIDENTE": "31.8"}])
    result = _normalize(text)

    assert result.cases[0].case_duration_days == 1200
    assert result.cases[1].age_at_incident == 31


# ---------------------------------------------------------------------------
# Transform pass
# ---------------------------------------------------------------------------


def test_invalid_date_rows_dropped(make_csv):
    """Test rows with an unparseable received date are dropped."""
    text = make_csv([{"FECHA_RECEPCION": "not a date"}, {"FECHA_RECEPCION": "2019-07-01"}])
    result = _normalize(text)

    assert result.rows_output == 1
    assert result.cases[0].received_date == date(2019, 7, 1)
    assert result.drop_reasons == {"invalid_date": 1}


def test_offset_dates_keep_written_calendar_date(make_csv):
    """Test timestamps with UTC offsets keep the date as written, not the UTC date."""
    text = make_csv(
        [
            {"FECHA_RECEPCION": "2020-12-31T22:00:00-05:00"},
            {"FECHA_RECEPCION": "2021-01-01T02:00:00+09:00"},
            {"FECHA_RECEPCION": "2019-07-01"},
        ]
    )
    result = _normalize(text)

    assert [c.received_date for c in result.cases] == [
        date(2020, 12, 31),
        date(2021, 1, 1),
        date(2019, 7, 1),
    ]
    assert result.cases[0].received_year == 2020


def test_na_race_excluded_and_variant_kept(make_csv):
    """Test race "N/A" is dropped while "Hispanic-American" is kept as Hispanic."""
    text = make_csv([{"RAZA": "N/A"}, {"RAZA": "Hispanic-American"}])
    result = _normalize(text)

    assert len(result.cases) == 1
    assert result.cases[0].race == "Hispanic"
    assert result.drop_reasons["unknown_race"] == 1


def test_unknown_gender_excluded(make_csv):
    """Test rows whose gender is N/A are dropped."""
    text = make_csv([{"GENERO": "N/A"}, {"GENERO": "Female"}])
    result = _normalize(text)

    assert [c.gender for c in result.cases] == ["Female"]
    assert result.drop_reasons == {"unknown_gender": 1}


def test_na_defaults(make_csv):
    """Test N/A categorical values become Unknown and N/A text fields become empty."""
    text = make_csv([{"CATEGORIA_DELITO": "N/A", "TERMINO_COMPROMISO": "N/A"}])
    case = _normalize(text).cases[0]

    assert case.offense_category == "Unknown"
    assert case.commitment_term == ""
    assert case.sentence_in_years is None


def test_absent_optional_columns(make_csv):
    """Test absent optional columns take their defaults."""
    header = [
        "ID_CASO",
        "FECHA_RECEPCION",
        "RAZA",
        "GENERO",
        "EDAD_AL_INCIDENTE",
        "DISPOSICION_CARGO",
        "TIPO_SENTENCIA",
        "TERMINO_COMPROMISO",
        "UNIDAD_COMPROMISO",
        "DURACION_CASO_EN_DIAS",
    ]
    case = _normalize(make_csv([{}], header=header)).cases[0]

    assert case.offense_category == "Unknown"
    assert case.incident_city == "Unknown"
    assert case.participant_id == ""


def test_sentence_years_attached(make_csv):
    """Test the converted sentence is attached to each case."""
    text = make_csv(
        [
            {"TERMINO_COMPROMISO": "24", "UNIDAD_COMPROMISO": "Months"},
            {"TERMINO_COMPROMISO": "Natural Life", "UNIDAD_COMPROMISO": "Years"},
            {"TERMINO_COMPROMISO": "5", "UNIDAD_COMPROMISO": "Weeks"},
        ]
    )
    cases = _normalize(text).cases

    assert cases[0].sentence_in_years == pytest.approx(2.0)
    assert cases[1].sentence_in_years == LIFE_SENTENCE_YEARS
    assert cases[2].sentence_in_years is None


def test_all_rows_dropped(make_csv):
    """Test NoValidRecordsError when nothing survives."""
    text = make_csv([{"RAZA": "N/A"}, {"FECHA_RECEPCION": "garbage"}])

    with pytest.raises(NoValidRecordsError) as exc_info:
        _normalize(text)

    assert exc_info.value.rows_input == 2


def test_transformations_recorded(make_csv):
    """Test the applied transformation steps are reported."""
    result = _normalize(make_csv([{"EDAD_AL_INCIDENTE": "150"}, {}]))

    assert "compute_medians" in result.transformations_applied
    assert "impute_age_at_incident" in result.transformations_applied
    assert "convert_sentence_to_years" in result.transformations_applied


def test_normalize_cases_convenience():
    """Test the convenience function accepts an in-memory frame."""
    df = pd.DataFrame(
        {
            "CASE_ID": ["1"],
            "RECEIVED_DATE": ["2021-01-05"],
            "RACE": ["White"],
            "GENDER": ["Female"],
            "AGE_AT_INCIDENT": ["44"],
            "CHARGE_DISPOSITION": ["Nolle Prosecution"],
            "SENTENCE_TYPE": ["Probation"],
            "COMMITMENT_TERM": ["6"],
            "COMMITMENT_UNIT": ["Months"],
            "LENGTH_OF_CASE_in_Days": ["90"],
        }
    )
    result = normalize_cases(df, resolve_columns(df.columns))

    assert result.rows_output == 1
    assert result.cases[0].sentence_in_years == pytest.approx(0.5)
