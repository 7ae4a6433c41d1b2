"""Collection commands -- import, export, and edit the request tree.

Paths are written as dotted sibling indices, as shown by ``reqtree tree
--plain``: ``0`` is the first top-level node, ``0.2`` its third child.
Paths shift after every insert, remove, or move, so re-read the tree
before chaining edits.
"""

from __future__ import annotations

from pathlib import Path as FilePath
from typing import Optional

import typer

from reqtree.commands.common import (
    cli_errors,
    format_path,
    open_workspace,
    parse_path,
    store_workspace,
)
from reqtree.exceptions import AlreadyExistsError, ValidationError
from reqtree.models import HTTPMethod, KeyValueRow, RequestContent, TreeNode
from reqtree.output import get_output, info, success
from reqtree.parser import format_hint
from reqtree.tree import AddChild, MoveNode, RemoveNode, Rename, iter_leaves, node_at
from reqtree.workspace import ensure_openapi_extension, export_to_file, read_text


def import_command(
    ctx: typer.Context,
    file: FilePath = typer.Argument(help="OpenAPI document (YAML or JSON)."),
    strict: bool = typer.Option(
        False, "--strict", help="Refuse documents that are not OpenAPI 3.x."
    ),
) -> None:
    """Import an OpenAPI document, replacing the current collection.

    The file extension selects the parser (``.json`` or ``.yaml``/``.yml``);
    other names are detected from the content.

    Example::

        reqtree import petstore.yaml
        reqtree import legacy.json --strict
    """
    with cli_errors():
        workspace = open_workspace(ctx)
        workspace.import_text(read_text(file), hint=format_hint(file), strict=strict)
        store_workspace(ctx, workspace)

    requests = sum(1 for _ in iter_leaves(workspace.root))
    success(
        f"Imported {requests} requests and {len(workspace.servers)} servers "
        f"from {file}"
    )


def export_command(
    ctx: typer.Context,
    file: FilePath = typer.Argument(help="Target file; .yaml is appended when missing."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
    include_secrets: bool = typer.Option(
        False,
        "--include-secrets",
        help="Write tokens, passwords and API key values into the document.",
    ),
) -> None:
    """Export the collection as an OpenAPI 3.0 YAML document.

    An existing file is only replaced with ``--force`` or after confirmation.
    Server credentials are blanked unless ``--include-secrets`` is given.

    Example::

        reqtree export api.yaml --force
    """
    with cli_errors():
        workspace = open_workspace(ctx)
        try:
            target = export_to_file(
                workspace, file, overwrite=force, include_secrets=include_secrets
            )
        except AlreadyExistsError:
            target = ensure_openapi_extension(file)
            if not typer.confirm(f"{target} already exists. Overwrite?"):
                info("Cancelled.")
                raise typer.Exit()
            target = export_to_file(
                workspace, file, overwrite=True, include_secrets=include_secrets
            )
    success(f"Exported to {target}")


def tree_command(ctx: typer.Context) -> None:
    """Show the collection tree.

    Example::

        reqtree tree
        reqtree --plain tree
    """
    with cli_errors():
        workspace = open_workspace(ctx)
    get_output().print_tree(workspace.root)


def mkdir_command(
    ctx: typer.Context,
    label: str = typer.Argument(help="Folder (tag) name."),
) -> None:
    """Create a top-level folder."""
    with cli_errors():
        label = label.strip()
        if not label:
            raise ValidationError("Folder name must not be blank")
        workspace = open_workspace(ctx)
        workspace.dispatch(AddChild((), TreeNode(label=label, expanded=True)))
        store_workspace(ctx, workspace)
    success(f"Created folder '{label}' at {len(workspace.root.children) - 1}")


def rename_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Dotted path of the node, e.g. 0.2."),
    label: str = typer.Argument(help="New label."),
) -> None:
    """Rename a node."""
    with cli_errors():
        target = parse_path(path)
        workspace = open_workspace(ctx)
        if node_at(workspace.root, target) is None:
            raise ValidationError(f"No node at path '{path}'")
        workspace.dispatch(Rename(target, label))
        store_workspace(ctx, workspace)
    success(f"Renamed {path or '<root>'} to '{label}'")


def rm_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Dotted path of the node, e.g. 0.2."),
) -> None:
    """Remove a node and everything below it."""
    with cli_errors():
        target = parse_path(path)
        if not target:
            raise ValidationError("The root cannot be removed")
        workspace = open_workspace(ctx)
        node = node_at(workspace.root, target)
        if node is None:
            raise ValidationError(f"No node at path '{path}'")
        workspace.dispatch(RemoveNode(target))
        store_workspace(ctx, workspace)
    success(f"Removed '{node.label}'")


def mv_command(
    ctx: typer.Context,
    src: str = typer.Argument(help="Dotted path of the node to move."),
    dst: str = typer.Argument(help="Dotted path of the new parent ('' for the root)."),
) -> None:
    """Move a node under a new parent, as its last child."""
    with cli_errors():
        workspace = open_workspace(ctx)
        new_path = workspace.dispatch(MoveNode(parse_path(src), parse_path(dst)))
        if new_path is None:
            raise ValidationError(
                f"Cannot move '{src}' to '{dst}': target is the node itself, "
                "one of its descendants, or does not exist"
            )
        store_workspace(ctx, workspace)
    success(f"Moved {src} to {format_path(new_path)}")


def _header_rows(headers: list[str]) -> list[KeyValueRow]:
    rows = []
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep or not name.strip():
            raise ValidationError(f"Invalid header '{header}': use 'Name: value'")
        rows.append(KeyValueRow(key=name.strip(), value=value.strip()))
    return rows


def save_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Request path, e.g. /pets/{petId}?verbose=1."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    tag: str = typer.Option("", "--tag", help="Folder to file the request under."),
    select: Optional[str] = typer.Option(
        None,
        "--select",
        help="Selected node. Replaces it when it is the same request; "
        "supplies the folder when --tag is not given.",
    ),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Header as 'Name: value'. Repeatable."
    ),
    body: str = typer.Option("", "--body", "-d", help="Request body."),
) -> None:
    """Save a request into the collection.

    The request is labelled by its path. Saving a path that already exists
    is refused unless that request is the ``--select``-ed node.

    Example::

        reqtree save /pets/{petId} --tag pets
        reqtree save /orders -X POST -H "Content-Type: application/json" -d '{}' --select 1
    """
    with cli_errors():
        parsed = HTTPMethod.parse(method)
        if parsed is None:
            raise ValidationError(f"Unknown HTTP method '{method}'")
        selected = parse_path(select) if select is not None else None
        content = RequestContent(
            method=parsed,
            url=url,
            headers=_header_rows(header),
            body=body,
        )
        workspace = open_workspace(ctx)
        path = workspace.save_request(content, tag=tag, selected_path=selected)
        store_workspace(ctx, workspace)
    success(f"Saved {parsed.value} {node_at(workspace.root, path).label} at {format_path(path)}")
