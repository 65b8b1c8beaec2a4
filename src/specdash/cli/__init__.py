"""
CLI commands for specdash.
"""

from specdash.cli.generate import generate_dashboard_command
from specdash.cli.validate import validate_dashboard_command

__all__ = [
    "generate_dashboard_command",
    "validate_dashboard_command",
]
