"""Typer application and CLI entry point for delivery.

This module wires together the top-level Typer application and registers
the built-in commands at import time (``setup``, ``token``, ``api``).

:func:`main` is the console-script entry point declared in
``pyproject.toml``.  Commands render their own
:class:`~delivery.exceptions.DeliveryError` through
:func:`delivery.commands.exit_on_error`; anything else that escapes is
written to a crash log under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from delivery import __version__
from delivery.exit_codes import EXIT_GENERIC_FAILURE, EXIT_SUCCESS


app = typer.Typer(
    name="delivery",
    help="Command-line client for a delivery server.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from delivery.commands.api import api_command  # noqa: E402
from delivery.commands.setup import setup_command  # noqa: E402
from delivery.commands.token import token_command  # noqa: E402

app.command("setup")(setup_command)
app.command("token")(token_command)
app.command("api")(api_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"delivery {__version__}")
        raise typer.Exit(code=EXIT_SUCCESS)


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
        False, "--verbose", "-v", help="Enable debug output and error cause chains."
    ),
    no_input: bool = typer.Option(
        False, "--no-input", help="Disable interactive prompts."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~delivery.output.OutputManager` and
    logging from CLI flags, and stores shared options in ``ctx.obj``.
    """
    from delivery.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.install_log_handler()

    ctx.ensure_object(dict)
    ctx.obj["no_input"] = no_input
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> Optional[str]:
    """Write a crash traceback to disk and return the log file path.

    Returns ``None`` if the log itself cannot be written.
    """
    from delivery.config import get_data_dir
    from delivery.exceptions import DeliveryError

    try:
        logs_dir = get_data_dir() / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        log_path = logs_dir / f"crash-{timestamp}.log"
        log_path.write_text(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        )
    except (DeliveryError, OSError):
        return None
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``delivery`` console script.

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
        from delivery.output import error

        log_path = _write_crash_log(exc)
        if log_path:
            error(f"Unexpected error. Debug log: {log_path}")
        else:
            error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
