"""specdash: generate Grafana monitoring dashboards from OpenAPI documents."""

__version__ = "0.1.0"
