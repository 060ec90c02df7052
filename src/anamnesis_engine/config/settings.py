"""Engine configuration schema and loader.

Configuration is optional: every setting has a default matching the
behaviour of the hosted form runtime. A YAML file can override the
defaults; its path is taken from the ``ANAMNESIS_ENGINE_CONFIG``
environment variable when not passed explicitly.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from anamnesis_engine.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ANAMNESIS_ENGINE_CONFIG"


class EngineConfig(BaseModel):
    """Tunable engine settings.

    Attributes:
        debounce_ms: Coalescing window for incremental submission updates.
        max_resolution_passes: Safety cap on question-level fixed-point
            passes. Hitting the cap is reported as a schema problem; it is
            not a semantic guarantee about how deep chains may go.
        other_sentinels: Option labels that mean "other, specify".
        other_suffixes: Suffixes of the companion free-text answer ids.
        untitled_section_pattern: Title used for sections without one;
            ``{index}`` is the 1-based section number.
    """

    debounce_ms: int = Field(default=100, ge=0, description="Debounce window in ms")
    max_resolution_passes: int = Field(
        default=10, ge=1, description="Cap on visibility fixed-point passes"
    )
    other_sentinels: List[str] = Field(
        default_factory=lambda: ["Övrigt", "Annat", "Other"],
        description="Option labels that require a free-text companion",
    )
    other_suffixes: List[str] = Field(
        default_factory=lambda: ["_other", "_övrigt", "_annat"],
        description="Suffixes appended to a question id for its companion",
    )
    untitled_section_pattern: str = Field(
        default="Sektion {index}",
        description="Fallback section title",
    )

    @field_validator("untitled_section_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Validate that the pattern only uses the {index} placeholder."""
        try:
            v.format(index=1)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Invalid section title pattern '{v}': {e}")
        return v

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def untitled_section_title(self, index: int) -> str:
        return self.untitled_section_pattern.format(index=index + 1)


def load_engine_config(config_path: Optional[Path] = None) -> EngineConfig:
    """Load engine configuration from YAML.

    Args:
        config_path: Optional explicit path. Falls back to the
            ``ANAMNESIS_ENGINE_CONFIG`` environment variable.

    Returns:
        EngineConfig from the file, or defaults when no file is configured
        or the file is empty.

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated.
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return EngineConfig()
        config_path = Path(env_path)

    config_path = Path(config_path)
    if not config_path.exists():
        logger.debug(f"No engine config found at {config_path}, using defaults")
        return EngineConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in engine config {config_path}: {e}")

    if data is None:
        logger.warning(f"Empty engine config at {config_path}")
        return EngineConfig()

    try:
        config = EngineConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid engine config {config_path}: {e}")

    logger.debug(f"Loaded engine config from {config_path}")
    return config


# Cached config (loaded once per process)
_cached_config: Optional[EngineConfig] = None


def get_engine_config(force_reload: bool = False) -> EngineConfig:
    """Get the current engine configuration (cached)."""
    global _cached_config

    if force_reload or _cached_config is None:
        _cached_config = load_engine_config()

    return _cached_config


def reset_engine_config_cache() -> None:
    """Forget the cached configuration."""
    global _cached_config
    _cached_config = None
