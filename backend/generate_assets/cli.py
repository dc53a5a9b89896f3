"""generate-assets command line interface"""

import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from . import __version__
from .config import get_settings
from .exceptions import AssetParseError, MetadataError
from .services.catalog import parse_assets
from .services.crates_dump import open_cached_db, prepare_crates_db
from .services.metadata import MetadataClients, resolve_metadata


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", envvar="LOG_LEVEL", default="INFO", show_default=True, help="Log level")
def main(log_level: str) -> None:
    """Build the asset catalog and resolve license / version metadata."""
    setup_logging(log_level)


@main.command(name="build")
@click.argument("asset_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write JSON here instead of stdout")
@click.option("--crates-db/--no-crates-db", default=True, show_default=True, help="Use the crates.io data dump")
@click.option("--refresh-db", is_flag=True, help="Download the crates.io data dump again")
def build(asset_dir: str, output: Optional[str], crates_db: bool, refresh_db: bool) -> None:
    """Walk ASSET_DIR and print the catalog tree as JSON."""
    settings = get_settings()
    db = prepare_crates_db(settings, refresh=refresh_db) if crates_db else None
    clients = MetadataClients.from_settings(settings, crates_db=db)
    try:
        section = parse_assets(asset_dir, clients)
    except AssetParseError as exc:
        raise click.ClickException(str(exc))
    finally:
        clients.close()

    payload = section.model_dump_json(indent=2)
    if output:
        Path(output).write_text(payload + "\n", encoding="utf-8")
        click.echo(f"Catalog written to {output}", err=True)
    else:
        click.echo(payload)


@main.command(name="resolve")
@click.argument("link")
def resolve(link: str) -> None:
    """Resolve metadata for a single LINK (uses the cached dump only)."""
    settings = get_settings()
    clients = MetadataClients.from_settings(settings, crates_db=open_cached_db(settings))
    try:
        metadata = resolve_metadata(link, clients)
    except MetadataError as exc:
        raise click.ClickException(str(exc))
    finally:
        clients.close()

    if metadata is None:
        click.echo(f"No client configured for {link}, skipped", err=True)
        return
    click.echo(metadata.model_dump_json(indent=2))


@main.command(name="prepare-db")
@click.option("--refresh", is_flag=True, help="Rebuild even when a cache exists")
def prepare_db(refresh: bool) -> None:
    """Download the crates.io data dump and load it into SQLite."""
    settings = get_settings()
    prepare_crates_db(settings, refresh=refresh).close()
    click.echo(f"crates.io database ready at {settings.crates_db_path}")


if __name__ == "__main__":
    main()
