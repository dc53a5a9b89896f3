import sqlite3
from typing import Optional

import httpx
from loguru import logger

from ..exceptions import NotFoundError
from ..schemas import Metadata
from .base import check_host, path_segments

# Latest published version of a crate, with the requirement it puts on the framework
# crate. Normal dependencies (kind 0) win over build (1) and dev (2) ones.
_LOOKUP_SQL = """
SELECT v.license, d.req
FROM crates AS c
JOIN versions AS v ON v.crate_id = c.id
LEFT JOIN crates AS f ON f.name = :framework
LEFT JOIN dependencies AS d ON d.version_id = v.id AND d.crate_id = f.id
WHERE c.name = :name
ORDER BY v.created_at DESC, v.id DESC, d.kind ASC, d.id ASC
LIMIT 1
"""


class CratesIoClient:
    """Answers metadata questions from a local copy of the crates.io database dump."""

    host = "crates.io"

    def __init__(self, db: sqlite3.Connection, framework_crate: str = "bevy"):
        self.db = db
        self.framework_crate = framework_crate

    def try_get_repository_client(self, url: httpx.URL) -> "CratesIoCrateClient":
        check_host(url, self.host, "crates.io")
        # https://crates.io/crates/<name>
        crate_name = path_segments(url, 2)[1]
        return CratesIoCrateClient(self, crate_name)

    def lookup(self, crate_name: str) -> Optional[Metadata]:
        row = self.db.execute(
            _LOOKUP_SQL, {"name": crate_name, "framework": self.framework_crate}
        ).fetchone()
        if row is None:
            return None
        license, req = row
        return Metadata(license=license or None, compatibility_version=req)

    def get_metadata(self, crate_name: str) -> Metadata:
        metadata = self.lookup(crate_name)
        if metadata is not None:
            return metadata
        # crates.io canonicalizes "_" and "-" to the same crate
        canonical = crate_name.replace("_", "-")
        if canonical != crate_name:
            metadata = self.lookup(canonical)
            if metadata is not None:
                logger.debug(f"[crates.io] {crate_name} found as {canonical}")
                return metadata
        raise NotFoundError(f"Failed to get data from crates.io db for {crate_name}")


class CratesIoCrateClient:
    def __init__(self, client: CratesIoClient, crate_name: str):
        self.client = client
        self.crate_name = crate_name

    def try_get_metadata(self) -> Metadata:
        return self.client.get_metadata(self.crate_name)
