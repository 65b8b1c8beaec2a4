"""CLI command for validating an existing dashboard file."""

from __future__ import annotations

from specdash.cli import ux
from specdash.core.errors import DashboardValidationError, main_with_error_handling
from specdash.dashboards.validator import validate_dashboard
from specdash.dashboards.versioning import load_existing_dashboard


@main_with_error_handling()
def validate_dashboard_command(dashboard_file: str) -> int:
    """Validate a generated dashboard JSON file.

    Returns:
        Exit code (0 if valid, validation error code otherwise)
    """
    ux.header(f"Validating {dashboard_file}")

    dashboard = load_existing_dashboard(dashboard_file)
    if dashboard is None:
        raise DashboardValidationError(
            f"dashboard file not found: {dashboard_file}", details={"file": dashboard_file}
        )

    result = validate_dashboard(dashboard)

    for message in result.warnings:
        ux.warning(message)
    if not result.is_valid:
        for message in result.errors:
            ux.error(message)
        raise DashboardValidationError(
            f"{dashboard_file} failed validation with {len(result.errors)} error(s)",
            details={"file": dashboard_file},
        )

    ux.success(f"Dashboard validation passed! Found {result.panel_count} panels.")
    return 0
