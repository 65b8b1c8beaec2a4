"""Core utilities shared across specdash."""

from specdash.core.errors import (
    ConfigurationError,
    DashboardValidationError,
    ExitCode,
    HashComputeError,
    PriorDashboardLoadError,
    SerializeError,
    SpecdashError,
    SpecLoadError,
    WriteError,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "SpecdashError",
    "ConfigurationError",
    "SpecLoadError",
    "HashComputeError",
    "PriorDashboardLoadError",
    "SerializeError",
    "WriteError",
    "DashboardValidationError",
    "main_with_error_handling",
]
