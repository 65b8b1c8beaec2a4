"""Root test configuration."""

import logging
import os

import pytest
import structlog

from specdash.config import get_settings

SAMPLE_OPENAPI = """\
openapi: 3.0.3
info:
  title: Sample Inventory API
  version: 1.0.0
paths:
  /users/{id}:
    parameters:
      - name: id
        in: path
        required: true
        schema:
          type: string
    get:
      summary: Get user
      responses:
        '200':
          description: OK
    delete:
      responses:
        '204':
          description: Deleted
  /health:
    get:
      summary: Health check
      responses:
        '200':
          description: OK
  /users:
    post:
      summary: Create user
      responses:
        '201':
          description: Created
    get:
      summary: List users
      responses:
        '200':
          description: OK
"""

GRPC_EXTENSION = """\
x-grpc:
  inventory.v1.Inventory:
    ListItems: {}
    GetItem:
      streaming: false
  auth.v1.Auth:
    Check: {}
"""


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path):
    """Keep SPECDASH_* variables and .env files from leaking into tests."""
    for key in list(os.environ):
        if key.startswith("SPECDASH_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def spec_text():
    return SAMPLE_OPENAPI


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / "openapi.yaml"
    path.write_text(SAMPLE_OPENAPI)
    return path


@pytest.fixture
def grpc_spec_file(tmp_path):
    path = tmp_path / "openapi-grpc.yaml"
    path.write_text(SAMPLE_OPENAPI + GRPC_EXTENSION)
    return path
