"""Tests for dashboard assembly and the generation pipeline."""

import hashlib
import json
from datetime import datetime, timezone

import pytest

from specdash.config import GeneratorConfig
from specdash.core.errors import (
    DashboardValidationError,
    PriorDashboardLoadError,
    SpecLoadError,
)
from specdash.dashboards.builder import (
    backup_dashboard,
    build_dashboard,
    build_template_variables,
    generate_dashboard_from_config,
    write_dashboard,
)
from specdash.dashboards.models import Dashboard
from specdash.specs.loader import load_api_document, parse_api_document

NOW = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


def _build(spec_path, existing=None, **config):
    document = load_api_document(spec_path)
    return build_dashboard(
        document, GeneratorConfig(input_file=spec_path, **config), "hash", existing=existing, now=NOW
    )


class TestBuildDashboard:
    """Tests for build_dashboard."""

    def test_panel_count(self, spec_file):
        dashboard = _build(spec_file)

        assert len(dashboard.panels) == 4 * 5

    def test_grpc_panels_appended(self, grpc_spec_file):
        dashboard = _build(grpc_spec_file)

        assert len(dashboard.panels) == 4 * 5 + 2 * 3
        assert dashboard.panels[20].title == "gRPC auth.v1.Auth/Check - Request Rate"

    def test_grpc_disabled(self, grpc_spec_file):
        dashboard = _build(grpc_spec_file, include_grpc=False)

        assert len(dashboard.panels) == 20

    def test_ids_contiguous(self, grpc_spec_file):
        dashboard = _build(grpc_spec_file)

        assert [p.id for p in dashboard.panels] == list(range(1, 27))

    def test_first_operation_is_sorted(self, spec_file):
        dashboard = _build(spec_file)

        assert dashboard.panels[0].title == "GET /health: Health check - Request Rate"
        assert 'path="/health", method="GET"' in dashboard.panels[0].targets[0].expr

    def test_title_from_document(self, spec_file):
        assert _build(spec_file).title == "Sample Inventory API Monitoring"

    def test_title_fallback(self, tmp_path):
        path = tmp_path / "untitled.yaml"
        path.write_text("openapi: 3.0.0\npaths:\n  /a:\n    get: {}\n")

        assert _build(path, dashboard_title="Fallback").title == "Fallback"

    def test_chrome(self, spec_file):
        dashboard = _build(spec_file, dashboard_uid="inventory", datasource="prom-main")
        data = dashboard.to_dict()

        assert data["uid"] == "inventory"
        assert data["tags"] == ["generated", "api", "monitoring"]
        assert data["style"] == "dark"
        assert data["editable"] is True
        assert data["refresh"] == "30s"
        assert data["timepicker"]["refresh_intervals"][0] == "5s"
        assert data["timepicker"]["time_options"][-1] == "30d"
        assert data["annotations"]["list"][0]["name"] == "Annotations & Alerts"
        assert data["annotations"]["list"][0]["builtIn"] == 1
        assert data["links"][0]["title"] == "API Documentation"
        assert [v["name"] for v in data["templating"]["list"]] == ["datasource", "environment", "service"]

    def test_version_and_meta(self, spec_file):
        dashboard = _build(spec_file)

        assert dashboard.version == 1
        assert dashboard.meta.version == 1
        assert dashboard.meta.spec_hash == "hash"
        assert dashboard.meta.generated == NOW

    def test_version_from_existing(self, spec_file):
        dashboard = _build(spec_file, existing=Dashboard(title="old", uid="old", version=4))

        assert dashboard.version == 5
        assert dashboard.meta.version == 5

    def test_round_trip(self, grpc_spec_file):
        """Test serializing then deserializing yields an equal dashboard."""
        dashboard = _build(grpc_spec_file)

        assert Dashboard.from_json(dashboard.to_json()) == dashboard


class TestTemplateVariables:
    """Tests for build_template_variables."""

    def test_datasource_selected(self):
        datasource = build_template_variables("prom-main")[0]

        assert datasource.var_type == "datasource"
        assert datasource.current == {"text": "prom-main", "value": "prom-main"}
        assert datasource.options[0].selected is True

    def test_environment_options(self):
        environment = build_template_variables("prometheus")[1]

        assert [o.value for o in environment.options] == ["$__all", "prod", "stage", "dev"]
        assert environment.all_value == ".*"
        assert environment.multi is True

    def test_service_query(self):
        service = build_template_variables("prometheus")[2]

        assert service.query == "label_values(http_requests_total, service)"
        assert service.datasource == "prometheus"
        assert service.sort == 1


class TestGenerateDashboardFromConfig:
    """Tests for the full generation pipeline."""

    def test_writes_file(self, spec_file, tmp_path):
        output = tmp_path / "out" / "dashboard.json"

        result = generate_dashboard_from_config(GeneratorConfig(input_file=spec_file, output_file=output))

        assert result.written
        data = json.loads(output.read_text())
        assert data["version"] == 1
        assert len(data["panels"]) == 20
        assert data["meta"]["spec_hash"] == hashlib.sha256(spec_file.read_bytes()).hexdigest()

    def test_non_update_runs_stay_at_version_1(self, spec_file, tmp_path):
        output = tmp_path / "dashboard.json"
        config = GeneratorConfig(input_file=spec_file, output_file=output)

        generate_dashboard_from_config(config)
        result = generate_dashboard_from_config(config)

        assert result.dashboard.version == 1
        assert json.loads(output.read_text())["version"] == 1

    def test_update_increments_version(self, spec_file, tmp_path):
        output = tmp_path / "dashboard.json"
        config = GeneratorConfig(input_file=spec_file, output_file=output, update_mode=True)

        first = generate_dashboard_from_config(config)
        second = generate_dashboard_from_config(config)
        third = generate_dashboard_from_config(config)

        assert (first.dashboard.version, second.dashboard.version, third.dashboard.version) == (1, 2, 3)
        assert third.previous_version == 2
        assert json.loads(output.read_text())["meta"]["version"] == 3

    def test_update_without_prior_file(self, spec_file, tmp_path):
        config = GeneratorConfig(input_file=spec_file, output_file=tmp_path / "new.json", update_mode=True)

        result = generate_dashboard_from_config(config)

        assert result.dashboard.version == 1
        assert result.previous_version is None

    def test_update_with_corrupt_prior_fails(self, spec_file, tmp_path):
        """Test a corrupt output file aborts the run and is left untouched."""
        output = tmp_path / "dashboard.json"
        output.write_text("not json")
        config = GeneratorConfig(input_file=spec_file, output_file=output, update_mode=True)

        with pytest.raises(PriorDashboardLoadError):
            generate_dashboard_from_config(config)

        assert output.read_text() == "not json"

    def test_corrupt_prior_ignored_without_update(self, spec_file, tmp_path):
        output = tmp_path / "dashboard.json"
        output.write_text("not json")

        result = generate_dashboard_from_config(GeneratorConfig(input_file=spec_file, output_file=output))

        assert result.dashboard.version == 1
        assert json.loads(output.read_text())["version"] == 1

    def test_spec_without_operations_writes_empty_dashboard(self, tmp_path):
        spec = tmp_path / "empty.yaml"
        spec.write_text("openapi: 3.0.0\ninfo:\n  title: Empty\npaths: {}\n")
        output = tmp_path / "dashboard.json"

        result = generate_dashboard_from_config(GeneratorConfig(input_file=spec, output_file=output))

        assert result.written
        assert result.validation.is_valid
        assert "dashboard has no panels" in result.validation.warnings
        data = json.loads(output.read_text())
        assert data["panels"] == []
        assert data["version"] == 1
        assert data["title"] == "Empty Monitoring"

    def test_invalid_generated_dashboard_is_not_written(self, spec_file, tmp_path):
        output = tmp_path / "dashboard.json"
        config = GeneratorConfig(input_file=spec_file, output_file=output)
        config.row_height = 0

        with pytest.raises(DashboardValidationError, match="outside"):
            generate_dashboard_from_config(config)

        assert not output.exists()

    def test_missing_spec(self, tmp_path):
        with pytest.raises(SpecLoadError):
            generate_dashboard_from_config(GeneratorConfig(input_file=tmp_path / "nope.yaml"))

    def test_dry_run_does_not_write(self, spec_file, tmp_path):
        output = tmp_path / "dashboard.json"

        result = generate_dashboard_from_config(
            GeneratorConfig(input_file=spec_file, output_file=output), dry_run=True
        )

        assert not result.written
        assert not output.exists()
        assert json.loads(result.dashboard_json)["title"] == "Sample Inventory API Monitoring"

    def test_backup_before_overwrite(self, spec_file, tmp_path):
        output = tmp_path / "dashboard.json"
        output.write_text('{"version": 1}')
        backups = tmp_path / "backups"

        result = generate_dashboard_from_config(
            GeneratorConfig(input_file=spec_file, output_file=output, backup_dir=backups)
        )

        assert result.backup_path is not None
        assert result.backup_path.parent == backups
        assert result.backup_path.read_text() == '{"version": 1}'


class TestWriteHelpers:
    """Tests for backup_dashboard and write_dashboard."""

    def test_backup_skipped_when_no_output(self, tmp_path):
        assert backup_dashboard(tmp_path / "missing.json", tmp_path / "backups") is None

    def test_backup_name(self, tmp_path):
        output = tmp_path / "dashboard.json"
        output.write_text("{}")

        backup = backup_dashboard(output, tmp_path / "backups", now=datetime(2024, 6, 1, 9, 30, 15))

        assert backup.name == "dashboard_20240601_093015_000000.json"

    def test_backups_with_same_timestamp_are_kept(self, tmp_path):
        output = tmp_path / "dashboard.json"
        backups = tmp_path / "backups"
        now = datetime(2024, 6, 1, 9, 30, 15, 250)

        output.write_text('{"version": 1}')
        first = backup_dashboard(output, backups, now=now)
        output.write_text('{"version": 2}')
        second = backup_dashboard(output, backups, now=now)

        assert first != second
        assert second.name == "dashboard_20240601_093015_000250_1.json"
        assert first.read_text() == '{"version": 1}'
        assert second.read_text() == '{"version": 2}'

    def test_write_leaves_no_temp_files(self, tmp_path):
        output = tmp_path / "dashboard.json"

        write_dashboard('{"title": "x"}\n', output)

        assert output.read_text() == '{"title": "x"}\n'
        assert [p.name for p in tmp_path.iterdir()] == ["dashboard.json"]


def test_parse_document_title_override():
    document = parse_api_document({"openapi": "3.0.0", "info": {"title": "Orders"}, "paths": {"/o": {"get": {}}}})

    dashboard = build_dashboard(document, GeneratorConfig(input_file="orders.yaml"), "h", now=NOW)

    assert dashboard.title == "Orders Monitoring"
    assert len(dashboard.panels) == 4
