"""Dashboard version and provenance tracking.

The output file is the only state carried between runs. In update mode the
previous dashboard's version is read back and incremented; nothing else from
the previous dashboard is reused. The spec hash is recorded for provenance
and never compared.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from specdash.core.errors import HashComputeError, PriorDashboardLoadError
from specdash.dashboards.models import Dashboard, DashboardMeta

logger = structlog.get_logger()


def compute_spec_hash(file_path: str | Path) -> str:
    """Return the SHA-256 hex digest of the file's raw bytes."""
    path = Path(file_path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise HashComputeError(f"cannot read {path}: {e}", details={"file": str(path)}) from e
    return hashlib.sha256(data).hexdigest()


def load_existing_dashboard(file_path: str | Path) -> Optional[Dashboard]:
    """Load a previously written dashboard.

    Returns:
        The dashboard, or None when the file does not exist

    Raises:
        PriorDashboardLoadError: If the file exists but is not a readable dashboard
    """
    path = Path(file_path)
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PriorDashboardLoadError(f"cannot read {path}: {e}", details={"file": str(path)}) from e

    try:
        dashboard = Dashboard.from_json(text)
    except json.JSONDecodeError as e:
        raise PriorDashboardLoadError(
            f"{path} is not valid JSON: {e}", details={"file": str(path)}
        ) from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PriorDashboardLoadError(
            f"{path} is not a dashboard: {e}", details={"file": str(path)}
        ) from e

    logger.debug("prior_dashboard_loaded", file=str(path), version=dashboard.version)
    return dashboard


def next_version(existing: Optional[Dashboard]) -> int:
    """Version for the dashboard about to be generated."""
    if existing is None:
        return 1
    return max(existing.version, 0) + 1


def build_meta(version: int, spec_hash: str, now: Optional[datetime] = None) -> DashboardMeta:
    """Metadata block for a freshly generated dashboard."""
    now = now or datetime.now(timezone.utc)
    return DashboardMeta(version=version, spec_hash=spec_hash, generated=now, last_updated=now)
