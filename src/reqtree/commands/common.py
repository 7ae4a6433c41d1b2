"""Helpers shared by the command modules.

Every command loads the workspace named in ``ctx.obj``, applies one change,
and saves it back. :func:`cli_errors` turns a
:class:`~reqtree.exceptions.ReqtreeError` into an error message and the
matching exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path as FilePath
from typing import Iterator

import typer

from reqtree.exceptions import ReqtreeError, ValidationError
from reqtree.models import GlobalConfig, Path
from reqtree.output import error
from reqtree.workspace import Workspace, load_workspace, save_workspace


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report :class:`ReqtreeError` and exit with its code."""
    try:
        yield
    except ReqtreeError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None


def get_config(ctx: typer.Context) -> GlobalConfig:
    obj = ctx.obj or {}
    config = obj.get("config")
    return config if isinstance(config, GlobalConfig) else GlobalConfig()


def workspace_file(ctx: typer.Context) -> FilePath:
    config = get_config(ctx)
    if not config.workspace_path:
        raise ValidationError("No workspace path configured")
    return FilePath(config.workspace_path).expanduser()


def open_workspace(ctx: typer.Context) -> Workspace:
    return load_workspace(workspace_file(ctx))


def store_workspace(ctx: typer.Context, workspace: Workspace) -> None:
    save_workspace(workspace, workspace_file(ctx))


def parse_path(text: str) -> Path:
    """Parse a dotted index path such as ``0.2``; the empty string is the root.

    Raises:
        ValidationError: If a segment is not a non-negative integer.
    """
    text = text.strip()
    if not text:
        return ()
    try:
        path = tuple(int(part) for part in text.split("."))
    except ValueError:
        raise ValidationError(f"Invalid path '{text}': use dotted indices like 0.2") from None
    if any(index < 0 for index in path):
        raise ValidationError(f"Invalid path '{text}': indices must be non-negative")
    return path


def format_path(path: Path) -> str:
    return ".".join(str(index) for index in path)
