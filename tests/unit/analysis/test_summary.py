"""
Tests for Dataset Summaries

Tests the dataset overview, age histogram and assistant digest.
"""

from datetime import date

from disparity_audit.analysis.summary import (
    NO_DATA_MESSAGE,
    age_histogram,
    create_data_summary,
    describe_dataset,
)
from disparity_audit.ingest.sentence import LIFE_SENTENCE_YEARS


def test_describe_dataset(make_case):
    """Test overview numbers."""
    cases = [
        make_case(case_id="1", received_date=date(2012, 1, 1), race="Black", offense_category="Theft"),
        make_case(case_id="2", received_date=date(2018, 1, 1), race="White", offense_category="Theft"),
        make_case(case_id="3", received_date=date(2015, 1, 1), race="White", offense_category="Narcotics"),
    ]
    overview = describe_dataset(cases)

    assert overview.total_cases == 3
    assert overview.date_range == "2012 - 2018"
    assert overview.unique_races == 2
    assert overview.unique_offenses == 2
    assert overview.to_dict()["total_cases"] == 3


def test_describe_empty_dataset():
    """Test overview of an empty set."""
    overview = describe_dataset([])

    assert overview.total_cases == 0
    assert overview.date_range == "N/A"


def test_age_histogram(make_case):
    """Test five-year age bins."""
    cases = [make_case(case_id=str(a), age_at_incident=a) for a in (21, 23, 27, 64)]

    assert age_histogram(cases) == [("20-24", 2), ("25-29", 1), ("60-64", 1)]
    assert age_histogram([]) == []


def test_data_summary_contents(make_case):
    """Test the digest lists totals, distributions, offenses and means."""
    cases = [
        make_case(case_id="1", race="Black", gender="Male", offense_category="Theft", sentence_in_years=2.0),
        make_case(case_id="2", race="Black", gender="Female", offense_category="Theft", sentence_in_years=4.0),
        make_case(case_id="3", race="White", gender="Male", offense_category="Battery", sentence_in_years=None),
        make_case(
            case_id="4",
            race="Hispanic",
            gender="Male",
            offense_category="Narcotics",
            sentence_in_years=LIFE_SENTENCE_YEARS,
            case_duration_days=600,
        ),
    ]
    summary = create_data_summary(cases)

    assert "Total cases: 4" in summary
    assert "Black: 50.0%, White: 25.0%, Hispanic: 25.0%" in summary
    assert "Male: 75.0%, Female: 25.0%" in summary
    assert "Theft (2 cases)" in summary
    assert "3.00 years" in summary
    assert "Mean case duration: 300 days" in summary


def test_data_summary_top_three_offenses(make_case):
    """Test only the three most frequent offense categories are listed."""
    offenses = ["A", "A", "A", "B", "B", "C", "D"]
    cases = [make_case(case_id=str(i), offense_category=o) for i, o in enumerate(offenses)]
    summary = create_data_summary(cases)

    assert "A (3 cases), B (2 cases), C (1 cases)" in summary
    assert "D (1 cases)" not in summary


def test_data_summary_empty():
    """Test the digest of an empty set."""
    assert create_data_summary([]) == NO_DATA_MESSAGE
