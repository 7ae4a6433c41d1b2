"""Server commands -- list, add, remove, and configure auth.

Provides the ``reqtree servers`` sub-command group. Servers are addressed
by their index in ``reqtree servers list``.
"""

from __future__ import annotations

from typing import Any, Optional

import typer
from pydantic import ValidationError as PydanticValidationError

from reqtree.auth.manager import create_default_manager
from reqtree.commands.common import cli_errors, open_workspace, store_workspace
from reqtree.exceptions import ValidationError
from reqtree.models import AuthDescriptor, auth_adapter
from reqtree.output import get_output, success

servers_app = typer.Typer(no_args_is_help=True)

_SECRET_FIELDS = ("value", "password", "token", "access_token")


def _mask(value: str) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return f"{value[:2]}...{value[-2:]}"


def describe_auth(auth: AuthDescriptor) -> str:
    """One-line summary of *auth* with secrets masked."""
    data = auth.model_dump(mode="json")
    kind = data.pop("type")
    parts = []
    for key, value in data.items():
        if value in ("", [], None, False):
            continue
        if key in _SECRET_FIELDS and isinstance(value, str):
            value = _mask(value)
        elif key == "scopes":
            value = ",".join(scope["name"] for scope in value)
        parts.append(f"{key}={value}")
    return f"{kind} ({', '.join(parts)})" if parts else kind


@servers_app.command("list")
def servers_list(ctx: typer.Context) -> None:
    """List servers with their auth.

    Example::

        reqtree servers list
        reqtree --json servers list
    """
    with cli_errors():
        workspace = open_workspace(ctx)
    rows = [
        [str(index), server.base_url, describe_auth(server.auth)]
        for index, server in enumerate(workspace.servers)
    ]
    get_output().print_table(["#", "Base URL", "Auth"], rows, title="Servers")


@servers_app.command("add")
def servers_add(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute http(s) base URL."),
) -> None:
    """Add a server. Trailing slashes are removed; duplicates are ignored."""
    with cli_errors():
        workspace = open_workspace(ctx)
        before = len(workspace.servers)
        index = workspace.add_server(url)
        store_workspace(ctx, workspace)
    if len(workspace.servers) == before:
        success(f"Server already present at {index}")
    else:
        success(f"Added server {index}: {workspace.servers[index].base_url}")


@servers_app.command("remove")
def servers_remove(
    ctx: typer.Context,
    index: int = typer.Argument(help="Server index."),
) -> None:
    """Remove a server."""
    with cli_errors():
        workspace = open_workspace(ctx)
        removed = workspace.remove_server(index)
        store_workspace(ctx, workspace)
    success(f"Removed server {removed.base_url}")


@servers_app.command("auth")
def servers_auth(
    ctx: typer.Context,
    index: int = typer.Argument(help="Server index."),
    auth_type: str = typer.Option(
        ...,
        "--type",
        "-t",
        help="none, api_key, http_basic, http_bearer, oauth2, or openid_connect.",
    ),
    name: Optional[str] = typer.Option(None, "--name", help="API key name."),
    location: Optional[str] = typer.Option(
        None, "--location", help="API key location: header, query, or cookie."
    ),
    value: Optional[str] = typer.Option(None, "--value", help="API key value."),
    username: Optional[str] = typer.Option(None, "--username", help="Basic auth username."),
    password: Optional[str] = typer.Option(None, "--password", help="Basic auth password."),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token."),
    bearer_format: Optional[str] = typer.Option(
        None, "--format", help="Authorization scheme word for bearer tokens."
    ),
    auto_update: Optional[bool] = typer.Option(
        None, "--auto-update/--no-auto-update", help="Refresh the bearer token from responses."
    ),
    token_path: Optional[str] = typer.Option(
        None, "--token-path", help="Where the new token sits in responses, e.g. $.data.token."
    ),
    access_token: Optional[str] = typer.Option(
        None, "--access-token", help="OAuth2 / OpenID Connect access token."
    ),
    url: Optional[str] = typer.Option(None, "--url", help="OpenID Connect discovery URL."),
) -> None:
    """Set the auth of a server.

    Only the options relevant to ``--type`` are used; the rest are rejected.

    Example::

        reqtree servers auth 0 --type http_bearer --token abc --auto-update --token-path $.token
        reqtree servers auth 0 --type api_key --name X-Key --location query --value abc
    """
    options: dict[str, Any] = {
        "name": name,
        "location": location,
        "value": value,
        "username": username,
        "password": password,
        "token": token,
        "bearer_format": bearer_format,
        "auto_update": auto_update,
        "token_path": token_path,
        "access_token": access_token,
        "url": url,
    }
    payload: dict[str, Any] = {"type": auth_type}
    payload.update({key: val for key, val in options.items() if val is not None})

    with cli_errors():
        known = create_default_manager().list_types()
        if auth_type not in known:
            raise ValidationError(
                f"Unknown auth type '{auth_type}'; choose one of: {', '.join(known)}"
            )
        try:
            auth = auth_adapter.validate_python(payload)
        except PydanticValidationError as exc:
            raise ValidationError(_auth_error_message(exc)) from None
        unused = set(payload) - set(type(auth).model_fields)
        if unused:
            flags = ", ".join(sorted(f"--{key.replace('_', '-')}" for key in unused))
            raise ValidationError(f"Options not valid for {auth.type}: {flags}")

        workspace = open_workspace(ctx)
        workspace.update_auth(index, auth)
        store_workspace(ctx, workspace)
    success(f"Server {index} auth set to {describe_auth(auth)}")


def _auth_error_message(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(part) for part in first.get("loc", ())[1:])
    return f"Invalid auth option {where}: {first.get('msg', 'invalid value')}"
