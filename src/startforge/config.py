"""Configuration management for StartForge.

Settings come from, in increasing priority:
- Default values
- A YAML configuration file
- Command-line options

Example:
    >>> from startforge.config import Config
    >>> config = Config.load("startforge.yaml")
    >>> config.training.max_false_starts
    6000
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import attr
import attrs
import yaml

from startforge.core.finish import OUTPUT_FORMATS
from startforge.io.balanced import check_fuzz

# =============================================================================
# Default Configuration Values
# =============================================================================

# Scanning defaults
DEFAULT_STRAND = "+"
DEFAULT_FEATURE_TYPES = ("CDS",)

# Training set defaults
DEFAULT_MAX_FALSE_STARTS = 6000
DEFAULT_BALANCE_FUZZ = 0.0
DEFAULT_SEED = 42

# Finish defaults
DEFAULT_OUTPUT_FORMAT = "full"


# =============================================================================
# Validators
# =============================================================================


def _check_fuzz(instance: Any, attribute: attrs.Attribute, value: float) -> None:
    check_fuzz(value)


def _check_non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise ValueError(f"{attribute.name} must be >= 0, got {value}")


def _to_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class ScanConfig:
    """Configuration for candidate scanning.

    Attributes:
        strand: Strand of the annotated features used as true starts.
        feature_types: GFF3 feature types treated as coding features.
    """

    strand: str = attrs.field(
        default=DEFAULT_STRAND, validator=attrs.validators.in_(("+", "-"))
    )
    feature_types: tuple[str, ...] = attrs.field(
        default=DEFAULT_FEATURE_TYPES, converter=_to_tuple
    )


@attrs.define
class TrainingConfig:
    """Configuration for training set construction.

    Attributes:
        max_false_starts: Maximum false starts sampled per genome.
        balance_fuzz: Class balance fuzz factor (0 writes everything).
        seed: Random seed for sampling and balancing.
    """

    max_false_starts: int = attrs.field(
        default=DEFAULT_MAX_FALSE_STARTS, converter=int, validator=_check_non_negative
    )
    balance_fuzz: float = attrs.field(
        default=DEFAULT_BALANCE_FUZZ, converter=float, validator=_check_fuzz
    )
    seed: int | None = DEFAULT_SEED


@attrs.define
class FinishConfig:
    """Configuration for final start calls.

    Attributes:
        output_format: "full" echoes the input; "compact" lists accepted
            starts only.
    """

    output_format: str = attrs.field(
        default=DEFAULT_OUTPUT_FORMAT, validator=attrs.validators.in_(OUTPUT_FORMATS)
    )


_SECTIONS = {
    "scan": ScanConfig,
    "training": TrainingConfig,
    "finish": FinishConfig,
}


@attrs.define
class Config:
    """Main configuration container for StartForge.

    Attributes:
        scan: Candidate scanning configuration.
        training: Training set configuration.
        finish: Final start call configuration.
    """

    scan: ScanConfig = attrs.Factory(ScanConfig)
    training: TrainingConfig = attrs.Factory(TrainingConfig)
    finish: FinishConfig = attrs.Factory(FinishConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a configuration from a nested dictionary.

        Missing sections and keys keep their defaults.

        Raises:
            ValueError: If a section or key is unknown, or a value is invalid.
        """
        sections: dict[str, Any] = {}
        for name, values in data.items():
            section_cls = _SECTIONS.get(name)
            if section_cls is None:
                raise ValueError(f"Unknown configuration section: {name}")
            values = values or {}
            if not isinstance(values, dict):
                raise ValueError(f"Configuration section {name} must be a mapping")

            known = {field.name for field in attrs.fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ValueError(
                    f"Unknown key(s) in section {name}: {', '.join(sorted(unknown))}"
                )
            sections[name] = section_cls(**values)

        return cls(**sections)

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load configuration from a YAML file.

        Args:
            path: Path to configuration file. If None, returns the default
                configuration.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return attr.asdict(self, retain_collection_types=False)

    def save(self, path: Path | str) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path to save configuration file.
        """
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
