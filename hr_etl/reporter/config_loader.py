"""
Configuration Loader for Reporter Service

This module loads and validates the report configuration from reports.yml.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgeBand:
    """Closed age interval; max=None means open-ended."""

    label: str
    min: int
    max: Optional[int] = None

    def contains(self, age: int) -> bool:
        return age >= self.min and (self.max is None or age <= self.max)


DEFAULT_AGE_BANDS = (
    AgeBand('18-24', 18, 24),
    AgeBand('25-34', 25, 34),
    AgeBand('35-44', 35, 44),
    AgeBand('45-54', 45, 54),
    AgeBand('55-64', 55, 64),
    AgeBand('65+', 65, None),
)


@dataclass
class ReportConfig:
    """Complete report configuration."""

    min_age: int = 18
    days_per_year: int = 365
    as_of: Optional[date] = None
    age_bands: list[AgeBand] = field(default_factory=lambda: list(DEFAULT_AGE_BANDS))

    def validate(self) -> None:
        """
        Validate thresholds and age bands.

        Raises:
            ValueError: If a value is out of range or bands overlap
        """
        if self.min_age < 0:
            raise ValueError(f"min_age must be non-negative, got {self.min_age}")
        if self.days_per_year <= 0:
            raise ValueError(f"days_per_year must be positive, got {self.days_per_year}")
        if not self.age_bands:
            raise ValueError("At least one age band is required")

        previous: Optional[AgeBand] = None
        for band in self.age_bands:
            if band.max is not None and band.max < band.min:
                raise ValueError(f"Age band {band.label!r} has max below min")
            if previous is not None:
                if previous.max is None or band.min <= previous.max:
                    raise ValueError(
                        f"Age bands {previous.label!r} and {band.label!r} overlap or are out of order"
                    )
            previous = band

        if self.age_bands[0].min > self.min_age:
            logger.warning(
                "First age band starts above min_age, some employees fall in no band",
                extra={'min_age': self.min_age, 'first_band': self.age_bands[0].label}
            )

    def band_for(self, age: int) -> Optional[str]:
        """Label of the band containing age, or None."""
        for band in self.age_bands:
            if band.contains(age):
                return band.label
        return None

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "ReportConfig":
        """Create ReportConfig from dictionary."""
        bands_list = config_dict.get("age_bands")
        if bands_list:
            age_bands = [
                AgeBand(
                    label=str(band["label"]),
                    min=int(band["min"]),
                    max=int(band["max"]) if band.get("max") is not None else None,
                )
                for band in bands_list
            ]
        else:
            age_bands = list(DEFAULT_AGE_BANDS)

        config = cls(
            min_age=int(config_dict.get("min_age", 18)),
            days_per_year=int(config_dict.get("days_per_year", 365)),
            as_of=_parse_as_of(config_dict.get("as_of")),
            age_bands=age_bands,
        )
        config.validate()
        return config


def _parse_as_of(value: Any) -> Optional[date]:
    # PyYAML already turns unquoted ISO dates into date objects
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def load_report_config(config_path: Optional[str] = None) -> ReportConfig:
    """
    Load report configuration from YAML file.

    Args:
        config_path: Path to reports.yml file. If None, uses default location.

    Returns:
        ReportConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid

    Example:
        >>> config = load_report_config('config/reports.yml')
        >>> config.min_age
        18
    """
    if config_path is None:
        # Default path relative to project root
        project_root = Path(__file__).parent.parent.parent
        config_path = str(project_root / "config" / "reports.yml")

    logger.info("Loading report configuration", extra={'config_path': config_path})

    try:
        with open(config_path) as f:
            config_dict = yaml.safe_load(f)

        if not config_dict:
            logger.warning("Empty configuration file, using defaults")
            config_dict = {}

        config = ReportConfig.from_dict(config_dict)

        logger.info(
            "Report configuration loaded successfully",
            extra={
                'min_age': config.min_age,
                'age_bands': [band.label for band in config.age_bands],
                'as_of': config.as_of.isoformat() if config.as_of else None,
            }
        )

        return config

    except FileNotFoundError:
        logger.error(f"Configuration file not found: {config_path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise ValueError(f"Failed to load configuration: {e}") from e
