"""Main entry point for the fastpurge application.

Sets up the Typer CLI application, performs dependency injection (Composition
Root), defines CLI commands, and delegates execution to the CommandHandler.

Exit codes: 1 for configuration, credential or input errors; 0 once dispatch
has run, whatever the individual chunk outcomes (see the summary and logs).
"""

import asyncio
import logging
from typing import List, Optional

import typer
from typing_extensions import Annotated

from fastpurge import __version__

# --- Core Layer ---
from fastpurge.core.command_handler import CommandHandler
from fastpurge.core.services.dispatcher import PurgeDispatcher
from fastpurge.core.services.retrier import DeliveryRetrier
from fastpurge.core.validation import validate_config

# --- Domain Layer ---
from fastpurge.domain.exceptions import FastPurgeError
from fastpurge.domain.models.purge import PurgeConfig

# --- Infrastructure Layer ---
from fastpurge.infrastructure.auth.edgegrid_signer import EdgeGridSigner
from fastpurge.infrastructure.cli.display import ConsoleDisplay
from fastpurge.infrastructure.config.edgerc import load_credentials
from fastpurge.infrastructure.config.settings import get_bool, get_config, get_log_level, load_configuration
from fastpurge.infrastructure.http.purge_client import FastPurgeClient
from fastpurge.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="fastpurge",
    help="Batching, authenticated client for Akamai Fast Purge (CCU v3).",
    add_completion=False,
)


# --- Dependency Injection (Manual) ---

def build_config(
    edgerc: Optional[str],
    section: Optional[str],
    method: Optional[str],
    network: Optional[str],
    file_type: Optional[str],
    retry_server_errors: Optional[bool],
) -> PurgeConfig:
    """Merges CLI options over settings and loads the edgerc credentials.

    Raises:
        CredentialError: If the edgerc file or section is missing.
    """
    credentials = load_credentials(edgerc or get_config("edgerc"), section or get_config("section"))
    return PurgeConfig(
        method=method or str(get_config("method")),
        network=network or str(get_config("network")),
        file_type=file_type or str(get_config("file_type")),
        credentials=credentials,
        retry_threshold=int(get_config("retry.threshold")),
        base_delay=float(get_config("retry.base_delay")),
        timeout=float(get_config("http.timeout")),
        retry_server_errors=retry_server_errors or get_bool("retry.server_errors"),
    )


def create_command_handler(config: PurgeConfig, ui: ConsoleDisplay, log: logging.Logger) -> CommandHandler:
    """Wires the services for one validated configuration."""
    signer = EdgeGridSigner(config.credentials)
    client = FastPurgeClient(config, signer)
    retrier = DeliveryRetrier(
        client,
        retry_threshold=config.retry_threshold,
        base_delay=config.base_delay,
        retry_server_errors=config.retry_server_errors,
        log=log,
    )
    dispatcher = PurgeDispatcher(retrier, log=log)
    return CommandHandler(config=config, client=client, dispatcher=dispatcher, ui=ui)


# --- CLI Commands ---

def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"fastpurge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = False,
):
    """Invalidate or delete cached content on the Akamai network."""


@app.command()
def purge(
    files: Annotated[
        Optional[List[str]],
        typer.Argument(help="Invalidation list files. Reads standard input when omitted."),
    ] = None,
    edgerc: Annotated[Optional[str], typer.Option("--edgerc", "-c", help="edgerc file (default ~/.edgerc).")] = None,
    section: Annotated[Optional[str], typer.Option("--section", "-s", help="edgerc section (default 'default').")] = None,
    method: Annotated[Optional[str], typer.Option("--method", "-m", help="invalidate or delete.")] = None,
    network: Annotated[Optional[str], typer.Option("--network", "-n", help="production or staging.")] = None,
    file_type: Annotated[Optional[str], typer.Option("--type", "-t", help="Invalidation list type: text or json.")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR.")] = None,
    retry_server_errors: Annotated[
        bool,
        typer.Option("--retry-server-errors", help="Also retry 5xx responses other than 507."),
    ] = False,
):
    """Send cache invalidation requests for every URL, cache key or JSON body given."""
    load_configuration()
    level = logging.getLevelName(log_level.upper()) if log_level else get_log_level()
    if not isinstance(level, int):
        level = logging.INFO
    log = setup_logging(
        log_level=level,
        log_format=get_config("logging.format"),
        log_file=get_config("logging.file"),
    )
    ui = ConsoleDisplay()

    try:
        config = build_config(edgerc, section, method, network, file_type, retry_server_errors)
        validate_config(config)
    except FastPurgeError as e:
        logger.error(f"Configuration error: {e}")
        ui.display_error(str(e))
        raise typer.Exit(code=1)

    handler = create_command_handler(config, ui, log)
    try:
        asyncio.run(handler.handle_purge(files or []))
    except (FastPurgeError, OSError) as e:
        logger.error(f"Purge aborted: {e}")
        ui.display_error(f"Purge aborted: {e}")
        raise typer.Exit(code=1)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
