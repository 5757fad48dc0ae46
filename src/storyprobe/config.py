"""Analysis configuration loading.

Configuration lives in a YAML file (``storyprobe.yaml`` by default)::

    validation:
      large_asset_bytes: 5242880
      max_passage_words: 1000
      max_choices_per_passage: 10
      disabled_validators: [duplicate_passage_titles]
    simulation:
      max_simulations: 100
      max_depth: 100
      strategy: random
      seed: 42

Resolution order for simulation settings:
1. Environment variable (e.g., STORYPROBE_MAX_SIMULATIONS)
2. Config file
3. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from storyprobe.errors import ConfigError
from storyprobe.simulation.types import STRATEGIES
from storyprobe.validation.content import (
    DEFAULT_LARGE_ASSET_BYTES,
    DEFAULT_MAX_CHOICES,
    DEFAULT_MAX_PASSAGE_WORDS,
)

DEFAULT_CONFIG_FILENAME = "storyprobe.yaml"
DEFAULT_MAX_SIMULATIONS = 100
DEFAULT_MAX_DEPTH = 100
DEFAULT_STRATEGY = "random"


@dataclass
class ValidationConfig:
    """Thresholds for the built-in validators.

    Attributes:
        large_asset_bytes: Assets above this size get a warning.
        max_passage_words: Passages above this word count get a warning.
        max_choices_per_passage: Passages with more choices get a warning.
        disabled_validators: Validator names left out of the default registry.
    """

    large_asset_bytes: int = DEFAULT_LARGE_ASSET_BYTES
    max_passage_words: int = DEFAULT_MAX_PASSAGE_WORDS
    max_choices_per_passage: int = DEFAULT_MAX_CHOICES
    disabled_validators: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationConfig:
        """Create config from dictionary."""
        return cls(
            large_asset_bytes=int(data.get("large_asset_bytes", DEFAULT_LARGE_ASSET_BYTES)),
            max_passage_words=int(data.get("max_passage_words", DEFAULT_MAX_PASSAGE_WORDS)),
            max_choices_per_passage=int(
                data.get("max_choices_per_passage", DEFAULT_MAX_CHOICES)
            ),
            disabled_validators=list(data.get("disabled_validators", [])),
        )


@dataclass
class SimulationConfig:
    """Defaults for playthrough simulation.

    Each field can be overridden by an environment variable; see
    ``from_dict``.
    """

    max_simulations: int = DEFAULT_MAX_SIMULATIONS
    max_depth: int = DEFAULT_MAX_DEPTH
    strategy: str = DEFAULT_STRATEGY
    seed: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationConfig:
        """Create config from dictionary, applying environment overrides.

        Checks STORYPROBE_MAX_SIMULATIONS, STORYPROBE_MAX_DEPTH,
        STORYPROBE_STRATEGY and STORYPROBE_SEED before the given data.
        """
        max_simulations = os.getenv("STORYPROBE_MAX_SIMULATIONS") or data.get(
            "max_simulations", DEFAULT_MAX_SIMULATIONS
        )
        max_depth = os.getenv("STORYPROBE_MAX_DEPTH") or data.get("max_depth", DEFAULT_MAX_DEPTH)
        strategy = os.getenv("STORYPROBE_STRATEGY") or data.get("strategy", DEFAULT_STRATEGY)
        seed = os.getenv("STORYPROBE_SEED") or data.get("seed")
        if strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown simulation strategy {strategy!r}; expected one of {', '.join(STRATEGIES)}"
            )
        return cls(
            max_simulations=int(max_simulations),
            max_depth=int(max_depth),
            strategy=str(strategy),
            seed=int(seed) if seed is not None else None,
        )


@dataclass
class AnalysisConfig:
    """Complete storyprobe configuration."""

    validation: ValidationConfig = field(default_factory=ValidationConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary with optional ``validation`` and ``simulation``
                sections.

        Returns:
            AnalysisConfig instance.
        """
        return cls(
            validation=ValidationConfig.from_dict(dict(data.get("validation") or {})),
            simulation=SimulationConfig.from_dict(dict(data.get("simulation") or {})),
        )


def load_config(config_path: Path | None = None) -> AnalysisConfig:
    """Load analysis configuration from a YAML file.

    Args:
        config_path: Path to the config file. When None, or when the file
            does not exist, defaults (plus environment overrides) are used.

    Returns:
        AnalysisConfig instance.

    Raises:
        ConfigError: If the file cannot be read or parsed, or a setting
            (from the file or the environment) is invalid.
    """
    if config_path is None or not config_path.exists():
        try:
            return AnalysisConfig.from_dict({})
        except ValueError as e:
            raise ConfigError(config_path or Path(DEFAULT_CONFIG_FILENAME), str(e)) from e

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            return AnalysisConfig.from_dict({})
        if not isinstance(data, dict):
            raise ConfigError(config_path, "Top level must be a mapping")

        return AnalysisConfig.from_dict(data)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(config_path, str(e)) from e
