"""
Dashboard validation logic.

Structural checks run on every generated dashboard before it is written,
and on existing dashboard files via ``specdash validate``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from specdash.dashboards.models import GRID_COLUMNS, Dashboard

REQUIRED_VARIABLES = ("datasource", "environment", "service")


@dataclass
class ValidationResult:
    """Result of validating a dashboard."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    panel_count: int = 0

    @property
    def is_valid(self) -> bool:
        """Whether the dashboard passed every required check."""
        return not self.errors


class DashboardValidator:
    """Validates the structure of a Grafana dashboard.

    With ``require_panels=False`` an empty panel list is only a warning; a
    document without operations legitimately generates an empty dashboard.
    """

    def __init__(self, require_panels: bool = True):
        self.require_panels = require_panels

    def validate(self, dashboard: Dashboard) -> ValidationResult:
        result = ValidationResult(panel_count=len(dashboard.panels))

        if not dashboard.title.strip():
            result.errors.append("dashboard has no title")
        if not dashboard.panels:
            if self.require_panels:
                result.errors.append("dashboard has no panels")
            else:
                result.warnings.append("dashboard has no panels")
        if dashboard.version < 1:
            result.errors.append(f"dashboard version must be >= 1, got {dashboard.version}")

        ids = [panel.id for panel in dashboard.panels]
        if ids != list(range(1, len(ids) + 1)):
            result.errors.append("panel ids are not the contiguous sequence 1..N")

        for panel in dashboard.panels:
            self._check_panel(panel, result)

        names = {v.name for v in dashboard.template_variables}
        for name in REQUIRED_VARIABLES:
            if name not in names:
                result.warnings.append(f"missing template variable '{name}'")

        if not dashboard.meta.spec_hash:
            result.warnings.append("meta block has no spec hash")

        return result

    def _check_panel(self, panel, result: ValidationResult) -> None:
        label = f"panel {panel.id} ({panel.title})"

        if not panel.targets:
            result.errors.append(f"{label} has no targets")
        ref_ids = [t.ref_id for t in panel.targets]
        if len(set(ref_ids)) != len(ref_ids):
            result.errors.append(f"{label} has duplicate refIds")
        for target in panel.targets:
            if not target.expr.strip():
                result.errors.append(f"{label} target {target.ref_id} has an empty query")

        pos = panel.grid_pos
        if pos.x < 0 or pos.y < 0 or pos.w < 1 or pos.h < 1 or pos.x + pos.w > GRID_COLUMNS:
            result.errors.append(f"{label} is outside the {GRID_COLUMNS}-column grid")


def validate_dashboard(dashboard: Dashboard, require_panels: bool = True) -> ValidationResult:
    """Validate a dashboard with the default validator."""
    return DashboardValidator(require_panels=require_panels).validate(dashboard)
