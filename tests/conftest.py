"""Shared fixtures for MCP Doctor tests."""

import pytest

from fake_servers import HANGING_SCRIPT, RESPONDING_SCRIPT, python_server
from mcp_doctor.models import ServerSpec


@pytest.fixture
def responding_server() -> ServerSpec:
    return python_server("responding", RESPONDING_SCRIPT)


@pytest.fixture
def hanging_server() -> ServerSpec:
    return python_server("hanging", HANGING_SCRIPT)


@pytest.fixture
def write_config(tmp_path):
    """Write a config file into the temporary directory and return its path."""

    def _write(text: str, name: str = "mcp.json"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
