"""
Dashboard assembly.

Builds the complete Grafana dashboard for an API document: the fixed
dashboard chrome (variables, annotation, link, time settings), the panels
placed by the layout engine, and the version/hash metadata. Also runs the
whole generation pipeline: load, hash, load prior, build, validate,
serialize, write.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from specdash.config import GeneratorConfig
from specdash.core.errors import DashboardValidationError, SerializeError, WriteError
from specdash.dashboards.layout import LayoutEngine
from specdash.dashboards.models import (
    Annotation,
    Dashboard,
    Link,
    TemplateVariable,
    VariableOption,
)
from specdash.dashboards.validator import ValidationResult, validate_dashboard
from specdash.dashboards.versioning import (
    build_meta,
    compute_spec_hash,
    load_existing_dashboard,
    next_version,
)
from specdash.logging import bind_context
from specdash.specs.enumerator import enumerate_operations, enumerate_rpc_methods
from specdash.specs.loader import ApiDocument, load_api_document

logger = structlog.get_logger()

DASHBOARD_TAGS = ["generated", "api", "monitoring"]
REFRESH_INTERVALS = ["5s", "10s", "30s", "1m", "5m", "15m", "30m", "1h", "2h", "1d"]
TIME_OPTIONS = ["5m", "15m", "1h", "6h", "12h", "24h", "2d", "7d", "30d"]
SERVICE_QUERY = "label_values(http_requests_total, service)"

ENVIRONMENTS = [
    ("Production", "prod"),
    ("Staging", "stage"),
    ("Development", "dev"),
]


def build_template_variables(datasource: str) -> list[TemplateVariable]:
    """Data source, environment and service selectors."""
    all_selected = {"text": "All", "value": "$__all"}
    return [
        TemplateVariable(
            name="datasource",
            label="Data Source",
            var_type="datasource",
            query="prometheus",
            current={"text": datasource, "value": datasource},
            options=[VariableOption(text=datasource, value=datasource, selected=True)],
            refresh=1,
        ),
        TemplateVariable(
            name="environment",
            label="Environment",
            var_type="custom",
            current=dict(all_selected),
            options=[VariableOption(text="All", value="$__all", selected=True)]
            + [VariableOption(text=text, value=value) for text, value in ENVIRONMENTS],
            include_all=True,
            all_value=".*",
            multi=True,
        ),
        TemplateVariable(
            name="service",
            label="Service",
            var_type="query",
            query=SERVICE_QUERY,
            current=dict(all_selected),
            datasource=datasource,
            include_all=True,
            all_value=".*",
            multi=True,
            refresh=1,
            sort=1,
            definition=SERVICE_QUERY,
            description="Service name filter",
        ),
    ]


def build_annotations() -> list[Annotation]:
    return [
        Annotation(
            name="Annotations & Alerts",
            datasource="-- Grafana --",
            built_in=1,
            enable=True,
            hide=True,
        )
    ]


def build_links() -> list[Link]:
    return [Link(title="API Documentation", tags=["api", "monitoring"])]


def dashboard_title(document: ApiDocument, default: str) -> str:
    """``"<API title> Monitoring"`` when the document has a title, else the default."""
    if document.title:
        return f"{document.title} Monitoring"
    return default


def build_dashboard(
    document: ApiDocument,
    config: GeneratorConfig,
    spec_hash: str,
    existing: Optional[Dashboard] = None,
    now: Optional[datetime] = None,
) -> Dashboard:
    """Assemble the dashboard for an API document.

    Args:
        document: Loaded API document
        config: Run configuration (uid, title, datasource, layout options)
        spec_hash: Hex digest of the document's raw bytes
        existing: Previously written dashboard in update mode; only its
            version is used
        now: Generation time (defaults to the current UTC time)

    Returns:
        Dashboard with panels, chrome and metadata
    """
    operations = enumerate_operations(document)
    rpc_methods = enumerate_rpc_methods(document) if config.include_grpc else []

    engine = LayoutEngine(row_height=config.row_height, pack_stat_rows=config.pack_stat_rows)
    panels = engine.layout(operations, rpc_methods)

    version = next_version(existing)

    logger.debug(
        "dashboard_built",
        operations=len(operations),
        rpc_methods=len(rpc_methods),
        panels=len(panels),
        version=version,
    )

    return Dashboard(
        title=dashboard_title(document, config.dashboard_title),
        uid=config.dashboard_uid,
        version=version,
        panels=panels,
        template_variables=build_template_variables(config.datasource),
        annotations=build_annotations(),
        links=build_links(),
        meta=build_meta(version, spec_hash, now=now),
        tags=list(DASHBOARD_TAGS),
        refresh_intervals=list(REFRESH_INTERVALS),
        time_options=list(TIME_OPTIONS),
    )


@dataclass
class GenerationResult:
    """Outcome of one generation run."""

    dashboard: Dashboard
    output_path: Path
    dashboard_json: str
    validation: ValidationResult
    previous_version: Optional[int] = None
    backup_path: Optional[Path] = None
    written: bool = False


def serialize_dashboard(dashboard: Dashboard) -> str:
    """Render the dashboard to JSON text, entirely in memory."""
    try:
        return dashboard.to_json() + "\n"
    except (TypeError, ValueError) as e:
        raise SerializeError(f"cannot serialize dashboard: {e}") from e


def backup_dashboard(output_path: Path, backup_dir: Path, now: Optional[datetime] = None) -> Optional[Path]:
    """Copy an existing output file to ``<backup_dir>/dashboard_<timestamp>.json``.

    The timestamp has microsecond precision; a numeric suffix keeps an
    existing backup with the same name from being overwritten.
    """
    if not output_path.exists():
        return None
    now = now or datetime.now()
    stem = f"dashboard_{now.strftime('%Y%m%d_%H%M%S_%f')}"
    backup_path = backup_dir / f"{stem}.json"
    counter = 1
    while backup_path.exists():
        backup_path = backup_dir / f"{stem}_{counter}.json"
        counter += 1
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(output_path, backup_path)
    except OSError as e:
        raise WriteError(
            f"cannot back up {output_path} to {backup_path}: {e}",
            details={"file": str(backup_path)},
        ) from e
    logger.info("dashboard_backed_up", file=str(output_path), backup=str(backup_path))
    return backup_path


def write_dashboard(dashboard_json: str, output_path: Path) -> None:
    """Write the dashboard atomically: temp file in the same directory, then rename."""
    tmp_name = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(dashboard_json)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, output_path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise WriteError(f"cannot write {output_path}: {e}", details={"file": str(output_path)}) from e


def generate_dashboard_from_config(config: GeneratorConfig, dry_run: bool = False) -> GenerationResult:
    """Run the full generation pipeline for one configuration.

    Any failure raises a ``SpecdashError`` subclass naming the stage; the
    output file is only replaced once the new dashboard is fully serialized
    and valid.
    """
    log = bind_context(spec_file=str(config.input_file), output_file=str(config.output_file))

    document = load_api_document(config.input_file)
    spec_hash = compute_spec_hash(config.input_file)

    existing = load_existing_dashboard(config.output_file) if config.update_mode else None

    dashboard = build_dashboard(document, config, spec_hash, existing=existing)

    validation = validate_dashboard(dashboard, require_panels=False)
    for message in validation.warnings:
        log.warning("dashboard_validation_warning", message=message)
    if not validation.is_valid:
        raise DashboardValidationError(
            "generated dashboard is invalid: " + "; ".join(validation.errors),
            details={"file": str(config.input_file)},
        )

    dashboard_json = serialize_dashboard(dashboard)

    result = GenerationResult(
        dashboard=dashboard,
        output_path=config.output_file,
        dashboard_json=dashboard_json,
        validation=validation,
        previous_version=existing.version if existing else None,
    )
    if dry_run:
        return result

    if config.backup_dir is not None:
        result.backup_path = backup_dashboard(config.output_file, config.backup_dir)

    write_dashboard(dashboard_json, config.output_file)
    result.written = True

    log.info(
        "dashboard_written",
        version=dashboard.version,
        panels=len(dashboard.panels),
        spec_hash=spec_hash,
    )
    return result
