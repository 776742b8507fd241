"""
pg_ready_check - block until a PostgreSQL server accepts connections and,
optionally, until a set of tables exists.

Usage:
    pg-ready-check --host db --tables users,app.orders --timeout 2m
    PGPASSWORD=secret pg-ready-check --quiet && ./start-service
"""
import logging
import sys
import traceback
from pathlib import Path
from typing import Optional
import typer
from . import __version__
from .config import ProbeSettings
from .connectors.factory import get_connector
from .domain.models import ProbeResult, ProbeStatus
from .exceptions import ConfigurationError, redact_text
from .log import LOGGER_NAME, setup_logger
from .prober import ExitCode, Prober, exit_code_for

logger = logging.getLogger(LOGGER_NAME)

EPILOG = (
    "Environment variables: PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE, PGSSLMODE "
    "supply connection parameters; PGREADY_TABLES, PGREADY_TIMEOUT, PGREADY_CONN_TIMEOUT, "
    "PGREADY_RETRY_INTERVAL, PGREADY_QUIET, PGREADY_CLASSIFY_TIMEOUTS tune the probe.\n\n"
    "Exit status: 0 ready; 1 connection never succeeded; 2 connected but tables missing; "
    "3 invalid arguments; 4 internal error."
)

app = typer.Typer(help="Wait for a PostgreSQL database to become ready", add_completion=False)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pg_ready_check (Python) {__version__}")
        raise typer.Exit()


def _report(result: ProbeResult, quiet: bool) -> None:
    if quiet:
        return
    if result.ready:
        typer.secho(f"✅ Database ready after {result.elapsed:.3f}s.", fg=typer.colors.GREEN)
    elif result.status == ProbeStatus.CHECKS_FAILED:
        typer.secho(f"❌ Connected, but required tables never appeared: {result.last_error}", fg=typer.colors.RED, err=True)
    else:
        typer.secho(f"❌ Database not ready after {result.elapsed:.3f}s. Last error: {result.last_error}", fg=typer.colors.RED, err=True)


@app.command(epilog=EPILOG)
def check(
    host: Optional[str] = typer.Option(None, "--host", help="Database server host or socket directory (env: PGHOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Database server port (env: PGPORT)"),
    username: Optional[str] = typer.Option(None, "--username", "-U", help="Database user name (env: PGUSER)"),
    dbname: Optional[str] = typer.Option(None, "--dbname", "-d", help="Database name to connect to (env: PGDATABASE)"),
    tables: Optional[str] = typer.Option(None, "--tables", help="Comma-separated tables that must exist, e.g. 'users,app.orders'"),
    timeout: Optional[str] = typer.Option(None, "--timeout", "-t", help="Maximum time to wait overall, e.g. 60s or 2m"),
    conn_timeout: Optional[str] = typer.Option(None, "--conn-timeout", help="Timeout for each connection attempt"),
    retry_interval: Optional[str] = typer.Option(None, "--retry-interval", help="Pause between attempts"),
    sslmode: Optional[str] = typer.Option(None, "--sslmode", help="libpq sslmode (env: PGSSLMODE)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML configuration file"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Run quietly, only the exit code matters"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output"),
    version: bool = typer.Option(False, "--version", callback=version_callback, is_eager=True, help="Print version information and exit"),
):
    """
    Poll the database until it is ready or the timeout expires.
    """
    overrides = dict(
        host=host,
        port=port,
        user=username,
        dbname=dbname,
        tables=tables,
        timeout=timeout,
        conn_timeout=conn_timeout,
        retry_interval=retry_interval,
        sslmode=sslmode,
        quiet=quiet or None,
    )

    try:
        if config:
            settings = ProbeSettings.from_yaml(config, **overrides)
        else:
            settings = ProbeSettings.load(**overrides)
        target = settings.target()
        required_tables = settings.required_tables()
    except ConfigurationError as e:
        if not quiet:
            typer.echo(f"Error loading config: {e}", err=True)
        raise typer.Exit(code=exit_code_for(ProbeStatus.BAD_ARGS))

    setup_logger(quiet=settings.quiet, verbose=verbose)
    logger.info("Attempting to connect to database: %s", target.describe())
    if required_tables:
        logger.info("Will also check for tables: [%s]", ", ".join(str(t) for t in required_tables))
    logger.info("Waiting up to %ss for database to be ready...", settings.timeout)

    prober = Prober(get_connector(settings.driver), classify_timeouts=settings.classify_timeouts)
    try:
        result = prober.run(
            target,
            required_tables,
            overall_timeout=settings.timeout,
            attempt_timeout=settings.conn_timeout,
            retry_interval=settings.retry_interval,
        )
    except ConfigurationError as e:
        logger.error("%s", e.redact(target.secret))
        raise typer.Exit(code=exit_code_for(ProbeStatus.BAD_ARGS))
    except Exception as e:
        logger.error("Internal error: %s", redact_text(str(e), target.secret))
        logger.debug("%s", redact_text(traceback.format_exc(), target.secret))
        raise typer.Exit(code=exit_code_for(ProbeStatus.INTERNAL_ERROR))

    _report(result, settings.quiet)
    raise typer.Exit(code=exit_code_for(result))


def run() -> None:
    """Console entry point. Usage errors exit with 3 instead of click's 2."""
    try:
        code = app(standalone_mode=False)
    except typer.Abort:
        sys.exit(ExitCode.INTERNAL_ERROR)
    except Exception as e:
        # typer may vendor its own click, so usage errors are matched by
        # shape rather than by class.
        if getattr(e, "exit_code", None) == 2 and callable(getattr(e, "show", None)):
            e.show()
            sys.exit(ExitCode.BAD_ARGS)
        raise
    sys.exit(code or 0)


if __name__ == "__main__":
    run()
