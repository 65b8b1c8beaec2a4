"""CLI command for generating a Grafana dashboard from an OpenAPI document."""

from __future__ import annotations

import sys
from typing import Optional

from specdash.cli import ux
from specdash.config import GeneratorConfig, Settings
from specdash.core.errors import main_with_error_handling
from specdash.dashboards.builder import generate_dashboard_from_config


@main_with_error_handling()
def generate_dashboard_command(
    spec_file: str,
    output: Optional[str] = None,
    update: bool = False,
    uid: Optional[str] = None,
    datasource: Optional[str] = None,
    title: Optional[str] = None,
    include_grpc: Optional[bool] = None,
    pack_stat_rows: Optional[bool] = None,
    backup_dir: Optional[str] = None,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
) -> int:
    """Generate a Grafana dashboard from an OpenAPI document.

    Args:
        spec_file: Path to the OpenAPI YAML/JSON file
        output: Output file path (default: settings.output_file)
        update: Carry the version forward from an existing output file
        uid: Dashboard UID override
        datasource: Prometheus data source name override
        title: Fallback dashboard title when the document has none
        include_grpc: Generate panels for the x-grpc extension
        pack_stat_rows: Remove the empty row under each stat panel pair
        backup_dir: Copy an existing output file here before overwriting it
        dry_run: Print dashboard JSON to stdout without writing a file
        settings: Settings to use instead of the environment

    Returns:
        Exit code (0 for success)
    """
    config = GeneratorConfig.from_settings(
        spec_file,
        settings=settings,
        output_file=output,
        dashboard_uid=uid,
        datasource=datasource,
        dashboard_title=title,
        update_mode=update,
        include_grpc=include_grpc,
        pack_stat_rows=pack_stat_rows,
        backup_dir=backup_dir,
    )

    result = generate_dashboard_from_config(config, dry_run=dry_run)
    dashboard = result.dashboard

    if dry_run:
        sys.stdout.write(result.dashboard_json)
        ux.info(f"Dry run: {len(dashboard.panels)} panels, not written")
        return 0

    ux.success(f"Successfully generated Grafana dashboard: {result.output_path}")
    ux.print_key_value(
        {
            "Title": dashboard.title,
            "UID": dashboard.uid,
            "Panels": str(len(dashboard.panels)),
            "Version": str(dashboard.version),
            "Spec hash": dashboard.meta.spec_hash[:12],
        }
    )
    if result.backup_path:
        ux.info(f"Backed up previous dashboard to {result.backup_path}")
    if config.update_mode and result.previous_version is not None:
        ux.info(f"Dashboard updated from version {result.previous_version} to {dashboard.version}")
    for message in result.validation.warnings:
        ux.warning(message)
    return 0
