"""
Unified error handling for specdash.

Every failure in the generation pipeline is raised as a ``SpecdashError``
subclass that records the stage it happened in. Nothing is retried and
nothing is partially written: the CLI decorator turns the error into a
message on stderr and a non-zero exit code.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Input error (spec file missing, unreadable or malformed)
- 12: Validation error (generated dashboard failed its checks)
- 13: Output error (prior dashboard corrupt, serialization or write failed)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    INPUT_ERROR = 11
    VALIDATION_ERROR = 12
    OUTPUT_ERROR = 13
    UNKNOWN_ERROR = 127


class SpecdashError(Exception):
    """Base exception for specdash errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    stage: str = "generate"
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = {"stage": self.stage, **(details or {})}

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class ConfigurationError(SpecdashError):
    """Raised for invalid settings or CLI arguments."""

    exit_code = ExitCode.CONFIG_ERROR
    stage = "config"


class SpecLoadError(SpecdashError):
    """Raised when the API document is missing or structurally invalid."""

    exit_code = ExitCode.INPUT_ERROR
    stage = "load_spec"


class HashComputeError(SpecdashError):
    """Raised when the API document cannot be read for hashing."""

    exit_code = ExitCode.INPUT_ERROR
    stage = "hash_spec"


class PriorDashboardLoadError(SpecdashError):
    """Raised when an existing output file is present but unreadable or not JSON."""

    exit_code = ExitCode.OUTPUT_ERROR
    stage = "load_prior"


class SerializeError(SpecdashError):
    """Raised when the dashboard cannot be rendered to JSON."""

    exit_code = ExitCode.OUTPUT_ERROR
    stage = "serialize"


class WriteError(SpecdashError):
    """Raised when the dashboard file (or its backup) cannot be written."""

    exit_code = ExitCode.OUTPUT_ERROR
    stage = "write"


class DashboardValidationError(SpecdashError):
    """Raised when a generated dashboard fails validation."""

    exit_code = ExitCode.VALIDATION_ERROR
    stage = "validate"


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI commands that provides unified error handling.

    Catches exceptions and converts them to exit codes, printing the error
    text to stderr.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Usage:
        @main_with_error_handling()
        def my_command() -> int:
            # command implementation
            return 0

    Exit codes:
        - SpecdashError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except SpecdashError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                print(f"Error: {format_error_message(e)}", file=sys.stderr)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return int(e.exit_code)
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                    )
                print(f"Error: {e}", file=sys.stderr)
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return int(ExitCode.UNKNOWN_ERROR)

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: SpecdashError) -> str:
    """Format an error message for display to users."""
    msg = str(error)
    extra = {k: v for k, v in error.details.items() if k != "stage"}
    if extra:
        detail_str = ", ".join(f"{k}={v}" for k, v in extra.items())
        msg = f"{msg} ({detail_str})"
    return msg
