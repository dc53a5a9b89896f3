from __future__ import annotations

import base64
import sqlite3
from typing import Callable

import httpx
import pytest

from generate_assets.config import Settings
from generate_assets.services.crates_dump import create_schema


def encode(text: str) -> str:
    """Base64 the way the GitHub API does it, wrapped at 60 characters."""
    raw = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return "\n".join(raw[i:i + 60] for i in range(0, len(raw), 60))


def mock_client(handler: Callable[[httpx.Request], httpx.Response], base_url: str) -> httpx.Client:
    return httpx.Client(base_url=base_url, transport=httpx.MockTransport(handler))


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        GITHUB_TOKEN="gh-token",
        GITLAB_TOKEN="gl-token",
        CRATES_DB_PATH=str(tmp_path / "crates.sqlite3"),
    )


@pytest.fixture()
def crates_db():
    # shared with the TestClient worker thread in the API tests
    db = sqlite3.connect(":memory:", check_same_thread=False)
    create_schema(db)
    db.executemany("INSERT INTO crates (id, name) VALUES (?, ?)", [
        (1, "bevy"),
        (2, "foo-bar"),
        (3, "bevy_tweening"),
        (4, "standalone"),
        (5, "dev_only_first"),
        (6, "republished"),
    ])
    db.executemany(
        "INSERT INTO versions (id, crate_id, license, created_at) VALUES (?, ?, ?, ?)",
        [
            (10, 2, "MIT", "2023-01-01 10:00:00"),
            (11, 2, "MIT OR Apache-2.0", "2024-01-01 10:00:00"),
            (12, 3, "MIT", "2024-07-01 10:00:00"),
            (13, 4, "Zlib", "2024-02-01 10:00:00"),
            (14, 5, "MIT", "2024-03-01 10:00:00"),
            # a higher id does not mean a newer release
            (15, 6, "Apache-2.0", "2024-05-01 10:00:00"),
            (16, 6, "MIT", "2023-05-01 10:00:00"),
        ],
    )
    db.executemany(
        "INSERT INTO dependencies (id, version_id, crate_id, req, kind) VALUES (?, ?, ?, ?, ?)",
        [
            (100, 10, 1, "^0.12", 0),
            (101, 11, 1, "^0.13", 0),
            (102, 12, 1, "^0.14", 0),
            (103, 12, 4, "^1", 0),
            (104, 14, 1, "^0.15", 2),
            (105, 14, 1, "^0.14", 0),
            (106, 15, 1, "^0.14", 0),
            (107, 16, 1, "^0.11", 0),
        ],
    )
    db.commit()
    yield db
    db.close()
