"""
Command line entry point for the Solidus checkout API.

Commands:
- version: print the Solidus version
- serve: run the API with uvicorn
- validate-catalog: check a catalog fixture file without loading it
"""

import logging
import sys
from pathlib import Path

import click
import yaml

from solidus.catalog import DEFAULT_FIXTURE, load_catalog_fixture
from solidus.validation import DomainValidationError
from solidus.version import solidus_version

logger = logging.getLogger(__name__)


@click.group()
def main() -> None:
    """Solidus checkout API tools."""


@main.command()
def version() -> None:
    """Print the Solidus version."""
    click.echo(solidus_version())


@main.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
)
def serve(host: str, port: int, reload: bool, log_level: str) -> None:
    """Run the checkout API."""
    import uvicorn

    click.echo(f"Starting Solidus {solidus_version()} on {host}:{port}")
    uvicorn.run(
        "solidus.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


@main.command("validate-catalog")
@click.argument(
    "path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=DEFAULT_FIXTURE,
)
def validate_catalog(path: Path) -> None:
    """Validate the catalog fixture at PATH."""
    try:
        catalog = load_catalog_fixture(path)
    except (yaml.YAMLError, DomainValidationError) as e:
        logger.debug("Catalog validation failed", exc_info=True)
        click.echo(f"Invalid catalog {path}: {e}", err=True)
        sys.exit(1)

    click.echo(f"Catalog {path} is valid")
    for section, records in catalog.items():
        click.echo(f"  {section}: {len(records)}")


if __name__ == "__main__":
    main()
