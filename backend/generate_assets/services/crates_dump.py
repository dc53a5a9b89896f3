"""Download the crates.io database dump and load the tables we need into SQLite.

The dump is a tarball of CSV files (`<date>/data/<table>.csv`). Only
`crates`, `versions` and `dependencies` are kept, and only the columns used
for metadata lookups.
"""

import csv
import io
import sqlite3
import sys
import tarfile
from pathlib import Path
from typing import Dict, IO, Optional

import httpx
from loguru import logger

from ..config import Settings, get_settings

TABLES: Dict[str, tuple] = {
    "crates": ("id", "name"),
    "versions": ("id", "crate_id", "license", "created_at"),
    "dependencies": ("id", "version_id", "crate_id", "req", "kind"),
}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS crates (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
CREATE TABLE IF NOT EXISTS versions (
    id INTEGER PRIMARY KEY, crate_id INTEGER NOT NULL, license TEXT, created_at TEXT
);
CREATE TABLE IF NOT EXISTS dependencies (
    id INTEGER PRIMARY KEY, version_id INTEGER NOT NULL, crate_id INTEGER NOT NULL, req TEXT, kind INTEGER
);
CREATE UNIQUE INDEX IF NOT EXISTS crates_name ON crates (name);
CREATE INDEX IF NOT EXISTS versions_crate ON versions (crate_id);
CREATE INDEX IF NOT EXISTS dependencies_version ON dependencies (version_id);
"""

# crates.csv carries whole READMEs in some rows
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


def create_schema(db: sqlite3.Connection) -> None:
    db.executescript(_SCHEMA)


def load_table(db: sqlite3.Connection, table: str, stream: IO[str]) -> int:
    columns = TABLES[table]
    reader = csv.DictReader(stream)
    rows = ([row.get(col) or None for col in columns] for row in reader)
    placeholders = ", ".join("?" for _ in columns)
    cur = db.executemany(
        f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})", rows
    )
    db.commit()
    return cur.rowcount


def table_for_member(member_name: str) -> Optional[str]:
    path = Path(member_name)
    if path.parent.name != "data" or path.suffix != ".csv":
        return None
    return path.stem if path.stem in TABLES else None


def load_dump_archive(db: sqlite3.Connection, archive: Path) -> Dict[str, int]:
    """Stream the needed CSV files out of the dump tarball into `db`."""
    create_schema(db)
    counts: Dict[str, int] = {}
    with tarfile.open(archive, mode="r|gz") as tf:
        for member in tf:
            table = table_for_member(member.name)
            if table is None or not member.isfile():
                continue
            raw = tf.extractfile(member)
            if raw is None:
                continue
            logger.info(f"[crates.io] loading {table} from {member.name}")
            with io.TextIOWrapper(raw, encoding="utf-8", newline="") as stream:
                counts[table] = load_table(db, table, stream)
    missing = set(TABLES) - set(counts)
    if missing:
        raise ValueError(f"crates.io dump is missing tables: {', '.join(sorted(missing))}")
    return counts


def download_dump(url: str, dest: Path, timeout: float) -> Path:
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"[crates.io] downloading data dump from {url}")
    tmp = dest.with_suffix(dest.suffix + ".part")
    with httpx.stream("GET", url, timeout=timeout, follow_redirects=True) as resp:
        resp.raise_for_status()
        with open(tmp, "wb") as f:
            for chunk in resp.iter_bytes():
                f.write(chunk)
    tmp.replace(dest)
    return dest


def open_cached_db(settings: Optional[Settings] = None, check_same_thread: bool = True) -> Optional[sqlite3.Connection]:
    """Connection to an already built dump database, or None when there is none."""
    settings = settings or get_settings()
    db_path = Path(settings.crates_db_path)
    if not db_path.exists():
        return None
    logger.info(f"[crates.io] using data dump cache from: {db_path}")
    return sqlite3.connect(db_path, check_same_thread=check_same_thread)


def prepare_crates_db(settings: Optional[Settings] = None, refresh: bool = False) -> sqlite3.Connection:
    """Open the cached dump database, building it first when needed."""
    settings = settings or get_settings()
    db_path = Path(settings.crates_db_path)

    if not refresh:
        cached = open_cached_db(settings)
        if cached is not None:
            return cached

    archive = download_dump(
        str(settings.crates_dump_url),
        db_path.parent / "db-dump.tar.gz",
        settings.http_timeout_seconds,
    )
    tmp_db = db_path.with_suffix(".building")
    tmp_db.unlink(missing_ok=True)
    db = sqlite3.connect(tmp_db)
    try:
        counts = load_dump_archive(db, archive)
    finally:
        db.close()
    tmp_db.replace(db_path)
    archive.unlink(missing_ok=True)
    logger.info(f"[crates.io] data dump loaded: {counts}")
    return sqlite3.connect(db_path)
