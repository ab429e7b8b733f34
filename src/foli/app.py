"""Typer application and CLI entry point for foli.

The root callback resolves the effective configuration (CLI flags, then
environment, then the global config file) and installs the output manager;
sub-commands read both from ``ctx.obj``.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  :class:`~foli.exceptions.FoliError` is mapped to its
exit code; any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`foli.config`: Configuration resolution.
    :mod:`foli.output`: Output formatting initialised in :func:`main_callback`.
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

from foli import __version__
from foli.exceptions import ConfigError
from foli.exit_codes import EXIT_GENERIC_FAILURE
from foli.models import CacheBehavior, GlobalConfig


app = typer.Typer(
    name="foli",
    help="Föli (Turku region) public transport data, cached on disk.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from foli.commands.cache import cache_app  # noqa: E402
from foli.commands.config import config_app  # noqa: E402
from foli.commands.feed import (  # noqa: E402
    arrivals_command,
    routes_command,
    stop_times_command,
    stops_command,
    trips_command,
)

app.command("routes")(routes_command)
app.command("stops")(stops_command)
app.command("trips")(trips_command)
app.command("stop-times")(stop_times_command)
app.command("arrivals")(arrivals_command)
app.add_typer(cache_app, name="cache", help="Inspect and clear the feed cache.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"foli {__version__}")
        raise typer.Exit()


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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    behavior: Optional[CacheBehavior] = typer.Option(
        None,
        "--behavior",
        "-b",
        case_sensitive=False,
        help="Cache behavior for this invocation.",
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the cache (same as --behavior no-cache)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Stores the resolved :class:`~foli.models.GlobalConfig` under
    ``ctx.obj["config"]``.  A pre-populated ``ctx.obj`` (e.g. from
    ``CliRunner.invoke(obj=...)``) is kept, which is how tests inject an
    httpx ``transport``.
    """
    from foli.config import resolve_config
    from foli.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    _configure_logging(verbose, no_color)

    try:
        config = resolve_config(
            cli_behavior=behavior, cli_format=cli_format, cli_no_cache=no_cache
        )
    except ConfigError as exc:
        # ``foli config`` must keep working so a broken file can be repaired.
        if ctx.invoked_subcommand != "config":
            raise
        logging.getLogger(__name__).warning("%s", exc)
        config = GlobalConfig()
        if cli_format is not None:
            config.output.format = cli_format

    try:
        fmt = OutputFormat(config.output.format)
    except ValueError:
        fmt = OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Send ``foli.*`` log records to stderr: warnings always, debug with ``--verbose``."""
    logger = logging.getLogger("foli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler: logging.Handler
    if no_color:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    else:
        handler = RichHandler(
            console=Console(file=sys.stderr, stderr=True),
            show_path=False,
            show_time=verbose,
        )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under the data directory and return its path."""
    from foli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``foli`` console script.

    :class:`~foli.exceptions.FoliError` exits with the error's
    ``exit_code``; other exceptions produce a crash log and exit 1.

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
        from foli.exceptions import CacheMissError, FoliError
        from foli.output import error, suggest

        if isinstance(exc, FoliError):
            error(str(exc))
            if isinstance(exc, CacheMissError):
                suggest("Drop --behavior cached-only (or use force-refresh) to fetch it.")
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
