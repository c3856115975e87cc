"""CLI commands for fetching llms.txt documents."""

import logging
import sys
from dataclasses import dataclass, field

import click
import httpx
import structlog
from pydantic import ValidationError

from llxt.cli.error_hints import (
    exit_code_for,
    format_fetch_error,
    format_registry_error,
)
from llxt.cli.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERAL_ERROR,
    EXIT_INVALID_INPUT,
    EXIT_NOT_FOUND,
)
from llxt.fetch.client import new_client
from llxt.fetch.config import ClientConfig
from llxt.fetch.fetcher import Fetcher
from llxt.fetch.models import FetchError
from llxt.observability.logging import configure_logging
from llxt.registry import Registry, RegistryError, RegistryErrorClass
from llxt.settings import get_settings


logger = structlog.get_logger()


@dataclass
class CliContext:
    """Objects shared by CLI commands.

    Tests pass a pre-built instance through click's ``obj`` to inject a
    registry or an httpx transport.
    """

    registry: Registry | None = None
    transport: httpx.BaseTransport | None = None
    client_config: ClientConfig = field(default_factory=ClientConfig.default)

    def get_registry(self) -> Registry:
        """Return the registry, loading bundled data on first use."""
        if self.registry is None:
            self.registry = Registry.from_bundled()
        return self.registry


@click.group()
@click.version_option(version="0.1.0", prog_name="llxt")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output (env: LLXT_VERBOSE).",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="HTTP request timeout in seconds (env: LLXT_TIMEOUT, default: 30).",
)
@click.option(
    "--retries",
    type=click.IntRange(min=0),
    default=None,
    help="Retry attempts after the first request (env: LLXT_RETRY_COUNT).",
)
@click.option(
    "--json-logs",
    is_flag=True,
    default=False,
    help="Use JSON format for logs on stderr (env: LLXT_JSON_LOGS).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    timeout: float | None,
    retries: int | None,
    json_logs: bool,
) -> None:
    """Fetch llms.txt files for AI agents."""
    try:
        settings = get_settings()
        verbose = verbose or settings.verbose
        client_config = settings.client_config(
            timeout=timeout, retry_count=retries, verbose=verbose
        )
    except ValidationError as e:
        click.echo(f"Error: invalid configuration\n{e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_format=json_logs or settings.json_logs,
    )

    obj = ctx.ensure_object(CliContext)
    obj.client_config = client_config


@cli.command()
@click.argument("name", required=False)
@click.option(
    "--full",
    "-f",
    is_flag=True,
    help="Fetch llms-full.txt if available.",
)
@click.pass_obj
def fetch(obj: CliContext, name: str | None, full: bool) -> None:
    """Fetch llms.txt for a tool or framework and print it to stdout."""
    if not name:
        click.echo("Error: name is required\n\nUsage: llxt fetch <name>", err=True)
        sys.exit(EXIT_INVALID_INPUT)

    log = logger.bind(component="cli", command="fetch", name=name, full=full)

    try:
        entry = obj.get_registry().lookup(name)
    except RegistryError as e:
        log.info("registry_lookup_failed", **e.to_dict())
        click.echo(format_registry_error(e), err=True)
        if e.error_class == RegistryErrorClass.NOT_FOUND:
            sys.exit(EXIT_NOT_FOUND)
        sys.exit(EXIT_GENERAL_ERROR)

    client = new_client(obj.client_config, transport=obj.transport)
    with Fetcher(client=client) as fetcher:
        try:
            content = fetcher.fetch_llms_txt(
                entry.llms_url, entry.llms_full_url, use_full=full
            )
        except FetchError as e:
            click.echo(format_fetch_error(e), err=True)
            sys.exit(exit_code_for(e))

    # Raw content only on stdout
    click.echo(content, nl=False)


@cli.command("list")
@click.option(
    "--category",
    type=str,
    default=None,
    help="Only show sources in this category.",
)
@click.pass_obj
def list_sources(obj: CliContext, category: str | None) -> None:
    """List registry keys and their llms.txt URLs."""
    registry = obj.get_registry()
    entries = (
        registry.list_by_category(category) if category else registry.list_entries()
    )
    for entry in entries:
        click.echo(f"{entry.key}\t{entry.llms_url}")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
