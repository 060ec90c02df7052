"""Exception hierarchy.

Evaluation never raises for data problems; only loading templates and
configuration does.
"""


class AnamnesisEngineError(Exception):
    """Base class for all engine errors."""


class SchemaLoadError(AnamnesisEngineError):
    """Raised when a template file cannot be loaded or is invalid."""


class ConfigError(AnamnesisEngineError):
    """Raised when engine configuration is invalid."""
