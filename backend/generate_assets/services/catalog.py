"""Walks the asset directory and builds the section tree.

Every sub directory becomes a section, every `.toml` file (except
`_category.toml`) an asset. Metadata failures for a single asset are logged
and never stop the walk; malformed descriptors do.
"""

import sqlite3
import tomllib
from pathlib import Path
from typing import Optional, Tuple

import httpx
from loguru import logger
from pydantic import ValidationError

from ..exceptions import AssetParseError, MetadataError
from ..schemas import Asset, Section, node_order
from .metadata import MetadataClients, get_extra_metadata

CATEGORY_FILE = "_category.toml"
SKIPPED_DIRS = {".git", ".github"}


def _load_toml(path: Path) -> dict:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise AssetParseError(f"{path}: {exc}") from exc


def read_asset(path: Path) -> Asset:
    data = _load_toml(path)
    if "original_path" in data:
        raise AssetParseError(f"{path}: unknown field `original_path`")
    try:
        asset = Asset.model_validate(data)
    except ValidationError as exc:
        raise AssetParseError(f"{path}: {exc}") from exc
    asset.original_path = path
    return asset


def read_category(directory: Path) -> Tuple[Optional[int], bool]:
    """Returns (order, sort_order_reversed) from the directory's `_category.toml`."""
    category = directory / CATEGORY_FILE
    if not category.exists():
        return None, False
    data = _load_toml(category)
    order = data.get("order")
    reversed_ = data.get("sort_order_reversed")
    return (
        order if isinstance(order, int) and not isinstance(order, bool) else None,
        reversed_ if isinstance(reversed_, bool) else False,
    )


def sort_section(section: Section) -> None:
    section.content.sort(key=lambda node: node.name, reverse=section.sort_order_reversed)
    section.content.sort(key=node_order)


def collect_asset(path: Path, clients: Optional[MetadataClients]) -> Asset:
    asset = read_asset(path)
    if clients is None:
        return asset
    try:
        get_extra_metadata(asset, clients)
    except (MetadataError, ValidationError, httpx.HTTPError, sqlite3.Error) as exc:
        # one broken link must not stop the catalog
        logger.error(f"[catalog] Failed to get metadata for {asset.name}: {exc!r}")
    return asset


def visit_dirs(directory: Path, section: Section, clients: Optional[MetadataClients]) -> None:
    if directory.is_file():
        return

    for path in sorted(directory.iterdir()):
        if path.name in SKIPPED_DIRS:
            continue
        if path.is_dir():
            order, sort_order_reversed = read_category(path)
            child = Section(name=path.name, order=order, sort_order_reversed=sort_order_reversed)
            visit_dirs(path, child, clients)
            section.content.append(child)
        elif path.suffix == ".toml" and path.name != CATEGORY_FILE:
            section.content.append(collect_asset(path, clients))

    sort_section(section)


def parse_assets(asset_dir: str, clients: Optional[MetadataClients] = None) -> Section:
    root = Path(asset_dir)
    if not root.is_dir():
        raise AssetParseError(f"Asset directory not found: {asset_dir}")

    logger.info(f"[catalog] Parsing assets in {root}")
    section = Section(
        name="Assets",
        template="assets.html",
        header="Assets",
    )
    visit_dirs(root, section, clients)
    return section
