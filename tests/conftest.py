"""Shared test fixtures for specgen.

Provides reusable fixtures for loading document fixtures, building schema
registries, isolating configuration, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from specgen.models import SchemaRegistry
from specgen.output import OutputFormat, OutputManager, remove_log_handlers, reset_output, set_output
from specgen.parser.schema_parser import parse_schema


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _make_registry(schemas: dict[str, Any]) -> SchemaRegistry:
    """Build a registry from raw schema dicts without a full document."""
    return SchemaRegistry(schemas={name: parse_schema(raw) for name, raw in schemas.items()})


def _make_document(
    paths: dict[str, Any] | None = None,
    schemas: dict[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a minimal valid OpenAPI 3.1 document."""
    document: dict[str, Any] = {
        "openapi": "3.1.0",
        "info": {"title": "Test API", "version": "1.0.0"},
        "paths": paths or {},
    }
    if schemas is not None:
        document["components"] = {"schemas": schemas}
    document.update(extra)
    return document


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_registry():
    """Factory building a SchemaRegistry from raw schema dicts."""
    return _make_registry


@pytest.fixture
def make_document():
    """Factory building a minimal valid OpenAPI 3.1 document."""
    return _make_document


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and log routing after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, and the CLI attaches a log handler bound to it. When
    Typer's CliRunner redirects those streams and the test finishes, the
    cached references become stale. Resetting both forces a fresh manager
    on next use and keeps later tests' log records away from closed
    streams.
    """
    yield
    remove_log_handlers()
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def blog_raw() -> dict[str, Any]:
    """Blog document: User, Post (refers to User) and Error."""
    with open(FIXTURES_DIR / "blog.json") as f:
        return json.load(f)


@pytest.fixture
def social_raw() -> dict[str, Any]:
    """Social document: a self-referential User schema."""
    with open(FIXTURES_DIR / "social.yaml") as f:
        return yaml.safe_load(f)


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Petstore document: security schemes, servers, path-level params."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CACHE_HOME and XDG_DATA_HOME at subdirectories of tmp_path,
    clears every SPECGEN_* variable, and changes the working directory to
    tmp_path so no ``specgen.json`` from the real project is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPECGEN_EXPORT_STYLE", "SPECGEN_NAMESPACE", "SPECGEN_NO_CACHE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
