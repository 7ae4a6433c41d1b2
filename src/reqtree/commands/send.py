"""Send command -- compile and dispatch a saved request.

``reqtree send PATH`` sends the leaf at a dotted tree path through the
selected server, prints the response body to stdout, and stores the
response (and any refreshed bearer token) in the workspace.
``--dry-run`` prints the compiled request instead of sending it.
"""

from __future__ import annotations

import json
from typing import Optional

import typer

from reqtree.client.compiler import CompiledRequest, compile_request
from reqtree.client.transport import HttpxTransport
from reqtree.commands.common import (
    cli_errors,
    get_config,
    open_workspace,
    parse_path,
    store_workspace,
)
from reqtree.config import parse_timeout
from reqtree.exceptions import ValidationError
from reqtree.exit_codes import EXIT_CONNECTION_ERROR
from reqtree.output import OutputFormat, error, get_output, info
from reqtree.tree import node_at


def _print_compiled(compiled: CompiledRequest) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_data(
            json.dumps(
                {
                    "method": compiled.method.value,
                    "url": compiled.url,
                    "headers": compiled.headers,
                    "body": compiled.body,
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return
    output.print_data(f"{compiled.method.value} {compiled.url}")
    for key, value in compiled.headers.items():
        output.print_data(f"{key}: {value}")
    if compiled.body is not None:
        output.print_data("")
        output.print_data(compiled.body)


def send_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Dotted path of the request, e.g. 0.2."),
    server: Optional[int] = typer.Option(
        None, "--server", "-s", help="Server index (default: the first server)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print the compiled request without sending it."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
) -> None:
    """Send a saved request.

    Example::

        reqtree send 0.1
        reqtree send 0.1 --server 1 --dry-run
    """
    config = get_config(ctx)
    with cli_errors():
        request_config = config.request.model_copy()
        if timeout is not None:
            request_config.timeout = parse_timeout(str(timeout), "--timeout")
        target = parse_path(path)
        workspace = open_workspace(ctx)
        node = node_at(workspace.root, target)
        if node is None or node.content is None:
            raise ValidationError(f"No request at path '{path}'")

        server_index = server
        if server_index is None and workspace.servers:
            server_index = 0

        if dry_run:
            if server_index is not None and not 0 <= server_index < len(workspace.servers):
                raise ValidationError(f"No server at index {server_index}")
            selected = workspace.servers[server_index] if server_index is not None else None
            _print_compiled(compile_request(node.content, selected))
            return

        with HttpxTransport(request_config) as transport:
            snapshot = workspace.send(target, server_index, transport)
        store_workspace(ctx, workspace)

    if snapshot.status == 0:
        error(snapshot.data)
        raise typer.Exit(code=EXIT_CONNECTION_ERROR)

    info(f"HTTP {snapshot.status} {snapshot.url} ({snapshot.duration_ms} ms)")
    if snapshot.data:
        get_output().format_response(snapshot.data)
