"""Pick the backend for an asset link and merge what it reports into the asset."""

import sqlite3
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from loguru import logger

from ..config import Settings, get_settings
from ..datasources.base import MetadataAssetClient, MetadataClient
from ..datasources.crates_io import CratesIoClient
from ..datasources.github_adapter import GitHubAdapter
from ..datasources.gitlab_adapter import GitLabAdapter
from ..exceptions import InvalidLinkError, UnknownHostError
from ..schemas import Asset, Metadata


@dataclass
class MetadataClients:
    """The backends that are configured. A missing one means its links are skipped."""

    crates_io: Optional[CratesIoClient] = None
    github: Optional[GitHubAdapter] = None
    gitlab: Optional[GitLabAdapter] = None

    def by_host(self) -> Dict[str, Optional[MetadataClient]]:
        return {
            CratesIoClient.host: self.crates_io,
            GitHubAdapter.host: self.github,
            GitLabAdapter.host: self.gitlab,
        }

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, crates_db: Optional[sqlite3.Connection] = None
    ) -> "MetadataClients":
        settings = settings or get_settings()
        clients = cls()
        if crates_db is not None:
            clients.crates_io = CratesIoClient(crates_db, framework_crate=settings.framework_crate)
        if settings.github_token:
            clients.github = GitHubAdapter(settings.github_token, settings=settings)
        else:
            logger.warning("[metadata] GITHUB_TOKEN not set, skipping GitHub metadata")
        if settings.gitlab_token:
            clients.gitlab = GitLabAdapter(settings.gitlab_token, settings=settings)
        else:
            logger.warning("[metadata] GITLAB_TOKEN not set, skipping GitLab metadata")
        return clients

    def close(self) -> None:
        for remote in (self.github, self.gitlab):
            if remote is not None:
                remote.close()
        if self.crates_io is not None:
            self.crates_io.db.close()


def parse_link(link: str) -> httpx.URL:
    try:
        url = httpx.URL(link)
    except httpx.InvalidURL as exc:
        raise InvalidLinkError(f"Invalid link {link!r}: {exc}") from exc
    if not url.scheme:
        raise InvalidLinkError(f"Link is not an absolute URL: {link!r}")
    return url


def select_client(link: str, clients: MetadataClients) -> Optional[MetadataAssetClient]:
    """Returns the repository client for `link`, or None when its backend is not configured."""
    url = parse_link(link)
    if not url.host:
        return None

    backends = clients.by_host()
    if url.host not in backends:
        raise UnknownHostError(f"Unknown host: {link}")

    backend = backends[url.host]
    if backend is None:
        logger.debug(f"[metadata] no client configured for {url.host}, skipping {link}")
        return None
    return backend.try_get_repository_client(url)


def resolve_metadata(link: str, clients: MetadataClients) -> Optional[Metadata]:
    repository = select_client(link, clients)
    if repository is None:
        return None
    return repository.try_get_metadata()


def get_extra_metadata(asset: Asset, clients: MetadataClients) -> None:
    """Tries to get the supported framework version and license from external sources."""
    logger.info(f"[metadata] Getting extra metadata for {asset.name}")
    asset.apply_metadata(resolve_metadata(asset.link, clients))
