"""Grafana dashboard data models.

Provides typed Python models for Grafana dashboard JSON structures.
Every model converts to Grafana JSON with ``to_dict`` and back with
``from_dict``; update mode relies on that round trip to reload a previously
written dashboard.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

SCHEMA_VERSION = 30
GRID_COLUMNS = 24

PROMETHEUS_DATASOURCE = {"type": "prometheus", "uid": "${datasource}"}

_FRACTION_RE = re.compile(r"\.(\d+)")


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp, including ``Z`` suffixes and nanoseconds."""
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValueError(f"invalid timestamp: {value!r}")
    text = value.replace("Z", "+00:00")
    # fromisoformat only accepts microsecond precision before Python 3.11
    text = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text)
    return datetime.fromisoformat(text)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class Target:
    """Prometheus query target for a panel."""

    expr: str  # PromQL expression
    legend_format: str = "{{label}}"
    ref_id: str = "A"
    interval: Optional[str] = None
    instant: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Grafana JSON format."""
        result: Dict[str, Any] = {
            "expr": self.expr,
            "legendFormat": self.legend_format,
            "refId": self.ref_id,
        }
        if self.interval:
            result["interval"] = self.interval
        if self.instant:
            result["instant"] = True
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Target:
        return cls(
            expr=data["expr"],
            legend_format=data.get("legendFormat", "{{label}}"),
            ref_id=data.get("refId", "A"),
            interval=data.get("interval") or None,
            instant=bool(data.get("instant", False)),
        )


@dataclass
class GridPos:
    """Panel placement on the 24-column dashboard grid."""

    x: int = 0
    y: int = 0
    w: int = 12
    h: int = 8

    def to_dict(self) -> Dict[str, int]:
        return {"h": self.h, "w": self.w, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GridPos:
        return cls(
            x=int(data.get("x", 0)),
            y=int(data.get("y", 0)),
            w=int(data.get("w", 12)),
            h=int(data.get("h", 8)),
        )


@dataclass
class ThresholdStep:
    """One absolute threshold step; the base step has no value."""

    color: str
    value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ThresholdStep:
        return cls(color=data["color"], value=_optional_float(data.get("value")))


@dataclass
class Panel:
    """Grafana dashboard panel."""

    title: str
    targets: List[Target]
    panel_type: str = "timeseries"  # timeseries, stat
    description: Optional[str] = None
    unit: Optional[str] = None
    color_mode: str = "palette-classic"
    min: Optional[float] = None
    max: Optional[float] = None
    thresholds: List[ThresholdStep] = field(default_factory=list)
    grid_pos: GridPos = field(default_factory=GridPos)
    datasource: Dict[str, str] = field(default_factory=lambda: dict(PROMETHEUS_DATASOURCE))

    id: int = 0

    def options(self) -> Dict[str, Any]:
        """Panel-specific display options."""
        if self.panel_type == "stat":
            return {
                "reduceOptions": {"values": False, "fields": "", "calcs": ["lastNotNull"]},
                "orientation": "auto",
                "text": {"titleSize": 10, "valueSize": 18},
                "showThresholdLabels": False,
                "showThresholdMarkers": True,
            }
        return {
            "legend": {"displayMode": "list", "placement": "bottom"},
            "tooltip": {"mode": "multi"},
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Grafana JSON format."""
        defaults: Dict[str, Any] = {
            "color": {"mode": self.color_mode},
            "thresholds": {
                "mode": "absolute",
                "steps": [step.to_dict() for step in self.thresholds],
            },
        }
        if self.unit:
            defaults["unit"] = self.unit
        if self.min is not None:
            defaults["min"] = self.min
        if self.max is not None:
            defaults["max"] = self.max

        result: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "type": self.panel_type,
            "datasource": dict(self.datasource),
            "targets": [t.to_dict() for t in self.targets],
            "gridPos": self.grid_pos.to_dict(),
            "options": self.options(),
            "fieldConfig": {"defaults": defaults, "overrides": []},
        }
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Panel:
        defaults = data.get("fieldConfig", {}).get("defaults", {})
        steps = defaults.get("thresholds", {}).get("steps") or []
        datasource = data.get("datasource")
        return cls(
            id=int(data.get("id", 0)),
            title=data["title"],
            panel_type=data.get("type", "timeseries"),
            targets=[Target.from_dict(t) for t in data.get("targets") or []],
            description=data.get("description") or None,
            unit=defaults.get("unit") or None,
            color_mode=defaults.get("color", {}).get("mode", "palette-classic"),
            min=_optional_float(defaults.get("min")),
            max=_optional_float(defaults.get("max")),
            thresholds=[ThresholdStep.from_dict(s) for s in steps],
            grid_pos=GridPos.from_dict(data.get("gridPos") or {}),
            datasource=dict(datasource) if isinstance(datasource, dict) else dict(PROMETHEUS_DATASOURCE),
        )


@dataclass
class VariableOption:
    """A selectable value of a template variable."""

    text: str
    value: str
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"text": self.text, "value": self.value}
        if self.selected:
            result["selected"] = True
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VariableOption:
        return cls(
            text=str(data.get("text", "")),
            value=str(data.get("value", "")),
            selected=bool(data.get("selected", False)),
        )


@dataclass
class TemplateVariable:
    """Dashboard template variable."""

    name: str
    label: str
    query: str = ""
    var_type: str = "query"  # query, custom, datasource
    current: Dict[str, Any] = field(default_factory=dict)
    options: List[VariableOption] = field(default_factory=list)
    datasource: Optional[str] = None
    refresh: int = 0
    include_all: bool = False
    all_value: Optional[str] = None
    sort: int = 0
    multi: bool = False
    definition: Optional[str] = None
    description: Optional[str] = None
    hide: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Grafana JSON format."""
        result: Dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "query": self.query,
            "current": dict(self.current),
            "type": self.var_type,
            "options": [o.to_dict() for o in self.options],
            "refresh": self.refresh,
            "includeAll": self.include_all,
            "multi": self.multi,
        }

        if self.datasource:
            result["datasource"] = self.datasource
        if self.all_value:
            result["allValue"] = self.all_value
        if self.sort:
            result["sort"] = self.sort
        if self.definition:
            result["definition"] = self.definition
        if self.description:
            result["description"] = self.description
        if self.hide:
            result["hide"] = self.hide

        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TemplateVariable:
        return cls(
            name=data["name"],
            label=data.get("label", data["name"]),
            query=data.get("query", ""),
            var_type=data.get("type", "query"),
            current=dict(data.get("current") or {}),
            options=[VariableOption.from_dict(o) for o in data.get("options") or []],
            datasource=data.get("datasource") or None,
            refresh=int(data.get("refresh", 0)),
            include_all=bool(data.get("includeAll", False)),
            all_value=data.get("allValue") or None,
            sort=int(data.get("sort", 0)),
            multi=bool(data.get("multi", False)),
            definition=data.get("definition") or None,
            description=data.get("description") or None,
            hide=int(data.get("hide", 0)),
        )


@dataclass
class Annotation:
    """Dashboard annotation source."""

    name: str
    datasource: str
    built_in: int = 0
    enable: bool = True
    hide: bool = False
    icon_color: str = "rgba(0, 211, 255, 1)"
    annotation_type: str = "dashboard"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "builtIn": self.built_in,
            "datasource": self.datasource,
            "enable": self.enable,
            "hide": self.hide,
            "iconColor": self.icon_color,
            "name": self.name,
            "type": self.annotation_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Annotation:
        return cls(
            name=data["name"],
            datasource=data.get("datasource", ""),
            built_in=int(data.get("builtIn", 0)),
            enable=bool(data.get("enable", True)),
            hide=bool(data.get("hide", False)),
            icon_color=data.get("iconColor", "rgba(0, 211, 255, 1)"),
            annotation_type=data.get("type", "dashboard"),
        )


@dataclass
class Link:
    """Dashboard link shown in the dashboard header."""

    title: str
    link_type: str = "dashboards"
    icon: str = "external link"
    tags: List[str] = field(default_factory=list)
    url: str = ""
    as_dropdown: bool = False
    include_vars: bool = False
    keep_time: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asDropdown": self.as_dropdown,
            "icon": self.icon,
            "includeVars": self.include_vars,
            "keepTime": self.keep_time,
            "tags": list(self.tags),
            "title": self.title,
            "type": self.link_type,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Link:
        return cls(
            title=data["title"],
            link_type=data.get("type", "dashboards"),
            icon=data.get("icon", "external link"),
            tags=list(data.get("tags") or []),
            url=data.get("url", ""),
            as_dropdown=bool(data.get("asDropdown", False)),
            include_vars=bool(data.get("includeVars", False)),
            keep_time=bool(data.get("keepTime", False)),
        )


@dataclass
class DashboardMeta:
    """Version and provenance of a generated dashboard."""

    version: int = 1
    spec_hash: str = ""
    generated: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated": _format_timestamp(self.generated),
            "spec_hash": self.spec_hash,
            "last_updated": _format_timestamp(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DashboardMeta:
        return cls(
            version=int(data.get("version", 0)),
            spec_hash=data.get("spec_hash", ""),
            generated=_parse_timestamp(data.get("generated")),
            last_updated=_parse_timestamp(data.get("last_updated")),
        )


@dataclass
class Dashboard:
    """Complete Grafana dashboard."""

    title: str
    uid: str
    version: int = 1
    panels: List[Panel] = field(default_factory=list)
    template_variables: List[TemplateVariable] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    meta: DashboardMeta = field(default_factory=DashboardMeta)

    tags: List[str] = field(default_factory=list)
    style: str = "dark"
    editable: bool = True
    schema_version: int = SCHEMA_VERSION

    # Time settings
    time_from: str = "now-6h"
    time_to: str = "now"
    refresh: str = "30s"
    refresh_intervals: List[str] = field(default_factory=list)
    time_options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Grafana JSON format.

        Panels keep the ids and grid positions they were built with.
        """
        return {
            "title": self.title,
            "panels": [p.to_dict() for p in self.panels],
            "templating": {"list": [tv.to_dict() for tv in self.template_variables]},
            "time": {"from": self.time_from, "to": self.time_to},
            "timepicker": {
                "refresh_intervals": list(self.refresh_intervals),
                "time_options": list(self.time_options),
            },
            "tags": list(self.tags),
            "style": self.style,
            "editable": self.editable,
            "uid": self.uid,
            "schemaVersion": self.schema_version,
            "version": self.version,
            "annotations": {"list": [a.to_dict() for a in self.annotations]},
            "links": [link.to_dict() for link in self.links],
            "refresh": self.refresh,
            "meta": self.meta.to_dict(),
        }

    def to_json(self) -> str:
        """Render pretty-printed dashboard JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Dashboard:
        """Rebuild a dashboard from Grafana JSON.

        Raises:
            KeyError, TypeError, ValueError: If the data does not have a dashboard's shape
        """
        if not isinstance(data, dict):
            raise TypeError(f"dashboard must be a JSON object, got {type(data).__name__}")
        version = data.get("version", 0)
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValueError(f"dashboard version must be an integer, got {version!r}")

        time_range = data.get("time") or {}
        timepicker = data.get("timepicker") or {}
        return cls(
            title=data.get("title", ""),
            uid=data.get("uid", ""),
            version=version,
            panels=[Panel.from_dict(p) for p in data.get("panels") or []],
            template_variables=[
                TemplateVariable.from_dict(v) for v in (data.get("templating") or {}).get("list") or []
            ],
            annotations=[
                Annotation.from_dict(a) for a in (data.get("annotations") or {}).get("list") or []
            ],
            links=[Link.from_dict(link) for link in data.get("links") or []],
            meta=DashboardMeta.from_dict(data.get("meta") or {}),
            tags=list(data.get("tags") or []),
            style=data.get("style", "dark"),
            editable=bool(data.get("editable", True)),
            schema_version=int(data.get("schemaVersion", SCHEMA_VERSION)),
            time_from=time_range.get("from", "now-6h"),
            time_to=time_range.get("to", "now"),
            refresh=data.get("refresh", "30s"),
            refresh_intervals=list(timepicker.get("refresh_intervals") or []),
            time_options=list(timepicker.get("time_options") or []),
        )

    @classmethod
    def from_json(cls, text: str) -> Dashboard:
        return cls.from_dict(json.loads(text))

