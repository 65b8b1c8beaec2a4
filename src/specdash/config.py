"""
Application settings and per-run generator configuration.

Settings come from ``SPECDASH_``-prefixed environment variables or a ``.env``
file; CLI arguments override them when a ``GeneratorConfig`` is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from specdash.core.errors import ConfigurationError

DEFAULT_OUTPUT_FILE = "grafana_dashboard.json"
DEFAULT_DASHBOARD_UID = "generated-api-dashboard"
DEFAULT_DASHBOARD_TITLE = "API Monitoring Dashboard"
DEFAULT_DATASOURCE = "prometheus"
DEFAULT_ROW_HEIGHT = 8


class Settings(BaseSettings):
    """Application settings."""

    # Dashboard identity
    dashboard_uid: str = DEFAULT_DASHBOARD_UID
    dashboard_title: str = DEFAULT_DASHBOARD_TITLE
    datasource: str = DEFAULT_DATASOURCE

    # Output
    output_file: str = DEFAULT_OUTPUT_FILE
    backup_dir: str | None = None

    # Generation
    include_grpc: bool = True
    row_height: int = DEFAULT_ROW_HEIGHT
    pack_stat_rows: bool = False

    # Logging
    log_level: str = "WARNING"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "SPECDASH_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass
class GeneratorConfig:
    """Configuration for a single dashboard generation run."""

    input_file: Path
    output_file: Path = Path(DEFAULT_OUTPUT_FILE)
    dashboard_uid: str = DEFAULT_DASHBOARD_UID
    dashboard_title: str = DEFAULT_DASHBOARD_TITLE
    datasource: str = DEFAULT_DATASOURCE
    update_mode: bool = False
    include_grpc: bool = True
    row_height: int = DEFAULT_ROW_HEIGHT
    pack_stat_rows: bool = False
    backup_dir: Path | None = None

    def __post_init__(self) -> None:
        self.input_file = Path(self.input_file)
        self.output_file = Path(self.output_file)
        if self.backup_dir is not None:
            self.backup_dir = Path(self.backup_dir)
        if self.row_height < 1:
            raise ConfigurationError(
                "row height must be a positive integer",
                details={"row_height": self.row_height},
            )

    @classmethod
    def from_settings(
        cls,
        input_file: str | Path,
        settings: Settings | None = None,
        **overrides: object,
    ) -> GeneratorConfig:
        """Build a run configuration from settings, applying non-None overrides."""
        settings = settings or get_settings()
        values: dict[str, object] = {
            "output_file": settings.output_file,
            "dashboard_uid": settings.dashboard_uid,
            "dashboard_title": settings.dashboard_title,
            "datasource": settings.datasource,
            "include_grpc": settings.include_grpc,
            "row_height": settings.row_height,
            "pack_stat_rows": settings.pack_stat_rows,
            "backup_dir": settings.backup_dir,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(input_file=Path(input_file), **values)  # type: ignore[arg-type]
