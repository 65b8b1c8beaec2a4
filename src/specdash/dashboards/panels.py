"""Panel builders for REST operations and gRPC methods.

Each builder is a pure function of its arguments: the same title, route,
panel id and grid row always produce an equal ``Panel``.

Metric naming convention:
- ``http_requests_total`` counter labelled path, method, status_code, service
- ``http_request_duration_seconds`` histogram with the same labels
- ``grpc_server_handled_total`` counter labelled grpc_service, grpc_method, grpc_code
- ``grpc_server_handling_seconds`` histogram labelled grpc_service, grpc_method
"""

from __future__ import annotations

from specdash.dashboards.models import GridPos, Panel, Target, ThresholdStep

HTTP_REQUESTS_METRIC = "http_requests_total"
HTTP_DURATION_METRIC = "http_request_duration_seconds_bucket"
GRPC_HANDLED_METRIC = "grpc_server_handled_total"
GRPC_DURATION_METRIC = "grpc_server_handling_seconds_bucket"

RATE_INTERVAL = "$__rate_interval"

# (quantile, legend) pairs, highest percentile first; refIds follow this order
PERCENTILES = (("0.99", "p99"), ("0.95", "p95"), ("0.90", "p90"), ("0.50", "p50"))

WIDE = 12
NARROW = 6


def ref_id(index: int) -> str:
    """Return the query reference id for a target position (0 -> A)."""
    return chr(ord("A") + index)


def http_selector(path: str, method: str, extra: str = "") -> str:
    """Label selector for one REST operation, filtered by the $service variable."""
    labels = f'path="{path}", method="{method}"'
    if extra:
        labels = f"{labels}, {extra}"
    return f'{labels}, service=~"$service"'


def grpc_selector(service: str, method: str) -> str:
    """Label selector for one gRPC method."""
    return f'grpc_service="{service}", grpc_method="{method}"'


def _percentile_targets(metric: str, selector: str) -> list[Target]:
    return [
        Target(
            expr=(
                f"histogram_quantile({quantile}, "
                f"sum(rate({metric}{{{selector}}}[{RATE_INTERVAL}])) by (le))"
            ),
            legend_format=legend,
            ref_id=ref_id(i),
        )
        for i, (quantile, legend) in enumerate(PERCENTILES)
    ]


def _rate_thresholds() -> list[ThresholdStep]:
    return [ThresholdStep("green"), ThresholdStep("red", 80.0)]


def _latency_thresholds() -> list[ThresholdStep]:
    return [ThresholdStep("green"), ThresholdStep("yellow", 0.5), ThresholdStep("red", 1.0)]


def request_rate_panel(title: str, path: str, method: str, panel_id: int, height: int, y: int) -> Panel:
    """Requests per second for one operation, one series per status code."""
    selector = http_selector(path, method)
    return Panel(
        id=panel_id,
        title=f"{title} - Request Rate",
        panel_type="timeseries",
        targets=[
            Target(
                expr=f"sum(rate({HTTP_REQUESTS_METRIC}{{{selector}}}[{RATE_INTERVAL}])) by (status_code)",
                legend_format="Status {{status_code}}",
                ref_id="A",
            )
        ],
        unit="reqps",
        thresholds=_rate_thresholds(),
        grid_pos=GridPos(x=0, y=y, w=WIDE, h=height),
        description="Request rate per status code",
    )


def latency_panel(title: str, path: str, method: str, panel_id: int, height: int, y: int) -> Panel:
    """p99/p95/p90/p50 response time for one operation."""
    return Panel(
        id=panel_id,
        title=f"{title} - Latency Percentiles",
        panel_type="timeseries",
        targets=_percentile_targets(HTTP_DURATION_METRIC, http_selector(path, method)),
        unit="s",
        thresholds=_latency_thresholds(),
        grid_pos=GridPos(x=WIDE, y=y, w=WIDE, h=height),
        description="Response time percentiles",
    )


def error_rate_panel(title: str, path: str, method: str, panel_id: int, height: int, y: int) -> Panel:
    """Share of 5xx responses, as a percentage of all responses."""
    errors = http_selector(path, method, extra='status_code=~"5.."')
    total = http_selector(path, method)
    return Panel(
        id=panel_id,
        title=f"{title} - Error Rate",
        panel_type="stat",
        targets=[
            Target(
                expr=(
                    f"sum(rate({HTTP_REQUESTS_METRIC}{{{errors}}}[{RATE_INTERVAL}])) / "
                    f"sum(rate({HTTP_REQUESTS_METRIC}{{{total}}}[{RATE_INTERVAL}])) * 100"
                ),
                legend_format="Error Rate",
                ref_id="A",
            )
        ],
        unit="percent",
        color_mode="thresholds",
        min=0.0,
        max=100.0,
        thresholds=[ThresholdStep("green"), ThresholdStep("yellow", 1.0), ThresholdStep("red", 5.0)],
        grid_pos=GridPos(x=0, y=y, w=NARROW, h=height),
        description="5xx error rate percentage",
    )


def throughput_panel(title: str, path: str, method: str, panel_id: int, height: int, y: int) -> Panel:
    """Total requests per second for one operation."""
    selector = http_selector(path, method)
    return Panel(
        id=panel_id,
        title=f"{title} - Throughput",
        panel_type="stat",
        targets=[
            Target(
                expr=f"sum(rate({HTTP_REQUESTS_METRIC}{{{selector}}}[{RATE_INTERVAL}]))",
                legend_format="Throughput",
                ref_id="A",
            )
        ],
        unit="reqps",
        thresholds=[ThresholdStep("green")],
        grid_pos=GridPos(x=NARROW, y=y, w=NARROW, h=height),
        description="Total requests per second",
    )


def grpc_request_rate_panel(
    title: str, service: str, method: str, panel_id: int, height: int, y: int
) -> Panel:
    """gRPC requests per second, one series per response code."""
    selector = grpc_selector(service, method)
    return Panel(
        id=panel_id,
        title=f"{title} - Request Rate",
        panel_type="timeseries",
        targets=[
            Target(
                expr=f"sum(rate({GRPC_HANDLED_METRIC}{{{selector}}}[{RATE_INTERVAL}])) by (grpc_code)",
                legend_format="Code {{grpc_code}}",
                ref_id="A",
            )
        ],
        unit="reqps",
        thresholds=_rate_thresholds(),
        grid_pos=GridPos(x=0, y=y, w=WIDE, h=height),
        description="gRPC request rate per status code",
    )


def grpc_latency_panel(
    title: str, service: str, method: str, panel_id: int, height: int, y: int
) -> Panel:
    """gRPC handling time percentiles."""
    return Panel(
        id=panel_id,
        title=f"{title} - Latency",
        panel_type="timeseries",
        targets=_percentile_targets(GRPC_DURATION_METRIC, grpc_selector(service, method)),
        unit="s",
        thresholds=_latency_thresholds(),
        grid_pos=GridPos(x=WIDE, y=y, w=WIDE, h=height),
        description="gRPC response time percentiles",
    )
