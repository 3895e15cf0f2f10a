"""
Unit tests for the report configuration loader.
"""

from datetime import date
from pathlib import Path

import pytest

from hr_etl.reporter.config_loader import (
    DEFAULT_AGE_BANDS,
    AgeBand,
    ReportConfig,
    load_report_config,
)


@pytest.fixture
def config_file(tmp_path):
    def _write(text):
        path = tmp_path / "reports.yml"
        path.write_text(text)
        return str(path)
    return _write


def test_load_shipped_config():
    """config/reports.yml matches the built-in defaults"""
    config = load_report_config()

    assert config.min_age == 18
    assert config.days_per_year == 365
    assert config.as_of is None
    assert config.age_bands == list(DEFAULT_AGE_BANDS)


def test_load_custom_config(config_file):
    path = config_file(
        "min_age: 21\n"
        "days_per_year: 365\n"
        "as_of: 2023-12-31\n"
        "age_bands:\n"
        "  - {label: young, min: 21, max: 39}\n"
        "  - {label: senior, min: 40}\n"
    )

    config = load_report_config(path)

    assert config.min_age == 21
    assert config.as_of == date(2023, 12, 31)
    assert config.age_bands == [AgeBand('young', 21, 39), AgeBand('senior', 40, None)]


def test_quoted_as_of_is_parsed(config_file):
    config = load_report_config(config_file('as_of: "2023-06-30"\n'))

    assert config.as_of == date(2023, 6, 30)


def test_empty_file_uses_defaults(config_file):
    config = load_report_config(config_file(""))

    assert config == ReportConfig()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_report_config(str(tmp_path / "nope.yml"))


def test_invalid_yaml(config_file):
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_report_config(config_file("min_age: [18\n"))


def test_overlapping_bands_rejected(config_file):
    path = config_file(
        "age_bands:\n"
        "  - {label: a, min: 18, max: 30}\n"
        "  - {label: b, min: 30, max: 40}\n"
    )

    with pytest.raises(ValueError, match="overlap"):
        load_report_config(path)


def test_band_after_open_ended_rejected():
    config = ReportConfig(age_bands=[AgeBand('65+', 65), AgeBand('70+', 70)])

    with pytest.raises(ValueError):
        config.validate()


@pytest.mark.parametrize("kwargs", [
    {'min_age': -1},
    {'days_per_year': 0},
    {'age_bands': []},
    {'age_bands': [AgeBand('bad', 30, 20)]},
])
def test_validate_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        ReportConfig(**kwargs).validate()


@pytest.mark.parametrize("age,label", [(17, None), (18, '18-24'), (64, '55-64'), (100, '65+')])
def test_band_for(age, label):
    assert ReportConfig().band_for(age) == label


def test_shipped_config_path_exists():
    root = Path(__file__).resolve().parents[4]

    assert (root / "config" / "reports.yml").is_file()
