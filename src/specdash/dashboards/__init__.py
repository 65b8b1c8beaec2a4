"""Grafana dashboard generation.

Generate Grafana dashboards from OpenAPI documents:
- Four panels per REST operation (request rate, latency, error rate, throughput)
- Two panels per gRPC method declared under ``x-grpc``
- Version and spec-hash metadata carried across regenerations
"""

from specdash.dashboards.builder import (
    GenerationResult,
    build_dashboard,
    generate_dashboard_from_config,
)
from specdash.dashboards.layout import LayoutEngine
from specdash.dashboards.models import (
    Annotation,
    Dashboard,
    DashboardMeta,
    GridPos,
    Link,
    Panel,
    Target,
    TemplateVariable,
    ThresholdStep,
    VariableOption,
)
from specdash.dashboards.validator import DashboardValidator, ValidationResult, validate_dashboard
from specdash.dashboards.versioning import (
    compute_spec_hash,
    load_existing_dashboard,
    next_version,
)

__all__ = [
    # Models
    "Annotation",
    "Dashboard",
    "DashboardMeta",
    "GridPos",
    "Link",
    "Panel",
    "Target",
    "TemplateVariable",
    "ThresholdStep",
    "VariableOption",
    # Generation
    "LayoutEngine",
    "GenerationResult",
    "build_dashboard",
    "generate_dashboard_from_config",
    # Versioning
    "compute_spec_hash",
    "load_existing_dashboard",
    "next_version",
    # Validation
    "DashboardValidator",
    "ValidationResult",
    "validate_dashboard",
]
