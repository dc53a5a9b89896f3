from typing import List, Protocol

import httpx

from ..exceptions import HostMismatchError, InvalidLinkError
from ..schemas import Metadata


class MetadataAssetClient(Protocol):
    """A handle bound to one remote project."""

    def try_get_metadata(self) -> Metadata:
        ...


class MetadataClient(Protocol):
    """A backend that can hand out a handle for links on its host."""

    host: str

    def try_get_repository_client(self, url: httpx.URL) -> MetadataAssetClient:
        ...


def check_host(url: httpx.URL, host: str, what: str) -> None:
    if not url.host:
        raise HostMismatchError("No host in URL")
    if url.host != host:
        raise HostMismatchError(f"Not a {what} link")


def path_segments(url: httpx.URL, required: int) -> List[str]:
    """Split the URL path like `/owner/repo/...` and make sure enough parts exist."""
    segments = url.path.lstrip("/").split("/")
    if len(segments) < required or not all(segments[:required]):
        raise InvalidLinkError(f"Expected at least {required} path segments in {url}")
    return segments
