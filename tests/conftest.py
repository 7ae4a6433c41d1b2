"""Shared test fixtures for reqtree.

Provides reusable fixtures for loading document fixtures, building sample
trees and servers, creating isolated config environments, managing output
state, and running CLI commands. These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from reqtree.models import (
    HTTPMethod,
    KeyValueRow,
    RequestContent,
    ServerEntry,
    TreeNode,
)
from reqtree.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_path() -> Path:
    """Path of the petstore OpenAPI 3.0 YAML fixture."""
    return FIXTURES_DIR / "petstore.yaml"


@pytest.fixture
def petstore_yaml(petstore_path: Path) -> str:
    """Raw petstore OpenAPI 3.0 YAML text."""
    return petstore_path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Tree and server fixtures
# ---------------------------------------------------------------------------


def _leaf(
    url: str,
    method: HTTPMethod = HTTPMethod.GET,
    **fields: object,
) -> TreeNode:
    """Build a leaf labelled by its path, with path rows synced to *url*."""
    content = RequestContent(method=method, url=url, **fields)
    if "path_params" not in fields:
        content.sync_path_params()
    return TreeNode(label=url.split("?", 1)[0], content=content)


@pytest.fixture
def sample_tree() -> TreeNode:
    """A small collection: two folders and one untagged request.

    Layout (dotted paths)::

        0     users/
        0.0     GET    /users
        0.1     POST   /users
        0.2     GET    /users/{id}
        1     admin/
        1.0     DELETE /admin/cache
        2     GET    /health
    """
    users = TreeNode(
        label="users",
        expanded=True,
        children=[
            _leaf(
                "/users",
                query_params=[KeyValueRow(key="page", value="1")],
            ),
            _leaf(
                "/users",
                HTTPMethod.POST,
                headers=[KeyValueRow(key="Content-Type", value="application/json")],
                body='{"name": "Ada"}',
            ),
            _leaf("/users/{id}"),
        ],
    )
    admin = TreeNode(
        label="admin",
        children=[_leaf("/admin/cache", HTTPMethod.DELETE)],
    )
    return TreeNode(
        label="Sample API",
        expanded=True,
        children=[users, admin, _leaf("/health")],
    )


@pytest.fixture
def sample_server() -> ServerEntry:
    """A server without auth."""
    return ServerEntry(base_url="https://api.test")


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all REQTREE_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("reqtree.config._is_xdg_platform", lambda: True)

    for var in ["REQTREE_WORKSPACE", "REQTREE_TIMEOUT"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Set up JSON output for tests that check JSON-formatted output."""
    output = OutputManager(format=OutputFormat.JSON)
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
