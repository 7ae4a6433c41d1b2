"""Typer application and CLI entry point for reqtree.

This module wires together the top-level Typer application and registers
the built-in commands (``import``, ``export``, ``tree``, ``mkdir``,
``rename``, ``rm``, ``mv``, ``save``, ``send`` and the ``servers`` group).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`reqtree.config`: Configuration resolution used in :func:`main_callback`.
    :mod:`reqtree.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from reqtree import __version__
from reqtree.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="reqtree",
    help="Organise, send, and exchange HTTP requests as OpenAPI collections.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"reqtree {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Route library log records to stderr through Rich.

    Warnings are always shown; ``--verbose`` lowers the threshold to debug.
    """
    root = logging.getLogger("reqtree")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    workspace: Optional[str] = typer.Option(
        None, "--workspace", "-w", help="Workspace file to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~reqtree.output.OutputManager` (from
    ``--json``/``--plain``, else the configured ``output.format``) and
    logging from CLI flags, resolves the effective configuration, and
    stores it in ``ctx.obj["config"]`` for the sub-commands.
    """
    from reqtree.commands.common import cli_errors
    from reqtree.config import resolve_config
    from reqtree.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    def _install(fmt: str) -> OutputManager:
        manager = OutputManager(
            format=OutputFormat(fmt),
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
        set_output(manager)
        return manager

    # Provisional manager so config errors are reported with the CLI flags.
    output = _install(cli_format or OutputFormat.AUTO.value)
    _configure_logging(verbose, no_color)

    with cli_errors():
        config = resolve_config(cli_workspace=workspace, cli_format=cli_format)
    if cli_format is None and config.output.format != OutputFormat.AUTO.value:
        output = _install(config.output.format)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    output.debug(f"Workspace: {config.workspace_path}")


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from reqtree.commands.collection import (  # noqa: E402
    export_command,
    import_command,
    mkdir_command,
    mv_command,
    rename_command,
    rm_command,
    save_command,
    tree_command,
)
from reqtree.commands.send import send_command  # noqa: E402
from reqtree.commands.servers import servers_app  # noqa: E402

app.command("import")(import_command)
app.command("export")(export_command)
app.command("tree")(tree_command)
app.command("mkdir")(mkdir_command)
app.command("rename")(rename_command)
app.command("rm")(rm_command)
app.command("mv")(mv_command)
app.command("save")(save_command)
app.command("send")(send_command)
app.add_typer(servers_app, name="servers", help="Server and auth management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from reqtree.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``reqtree`` console script.

    Unhandled :class:`~reqtree.exceptions.ReqtreeError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from reqtree.exceptions import ReqtreeError
        from reqtree.output import error

        if isinstance(exc, ReqtreeError):
            error(exc.message)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
