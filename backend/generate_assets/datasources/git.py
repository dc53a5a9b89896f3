"""Shared plumbing for hosted git remotes (GitHub, GitLab).

A remote client hands out repository clients; a repository client can read a
file and, depending on the host, the repository license. Metadata is derived
from the repository's Cargo.toml.
"""

import base64
import binascii
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from ..config import Settings, get_settings
from ..exceptions import (
    ContentEncodingError,
    ManifestError,
    MetadataError,
    TransportError,
    UnsupportedOperationError,
)
from ..schemas import Metadata
from ..services.manifest import metadata_from_manifest

MANIFEST_FILE = "Cargo.toml"

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ContentResponse(BaseModel):
    encoding: str
    content: str


def decode_content(response: ContentResponse) -> str:
    if response.encoding != "base64":
        raise ContentEncodingError("Content is not in base64")
    try:
        data = base64.b64decode(response.content.replace("\n", "").strip(), validate=True)
        return data.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ContentEncodingError(f"Invalid base64 content: {exc}") from exc


class GitRemoteClient(ABC):
    """Connection to one git hosting service."""

    host: str
    service: str

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or get_settings()
        self.framework_crate = self.settings.framework_crate
        self.license_endpoint_fallback = self.settings.license_endpoint_fallback
        self.client = client or httpx.Client(
            base_url=str(self.base_url()),
            headers=self.headers(),
            timeout=self.settings.http_timeout_seconds,
        )

    @abstractmethod
    def base_url(self) -> str:
        ...

    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.settings.user_agent,
        }

    @abstractmethod
    def try_get_repository_client(self, url: httpx.URL) -> "GitRepositoryClient":
        """Gives a client for the repository behind `url`.

        Raises HostMismatchError when the URL belongs to another host.
        """

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            resp = self.client.get(path, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = exc.response.text
            status = exc.response.status_code
            raise TransportError(f"{self.service} {status}: {body}") from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"{self.service} request error: {type(exc).__name__} {repr(exc)}"
            ) from exc
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"{self.service} returned invalid JSON for {path}") from exc

    def get_model(self, path: str, model: Type[ResponseT], params: Optional[Dict[str, Any]] = None) -> ResponseT:
        data = self.get_json(path, params=params)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise TransportError(f"{self.service} returned an unexpected response for {path}") from exc

    def close(self) -> None:
        self.client.close()


class GitRepositoryClient(ABC):
    """Client for a single repository on a git remote."""

    def __init__(self, remote: GitRemoteClient):
        self.remote = remote

    @abstractmethod
    def try_get_file_content(self, file_path: str) -> str:
        ...

    @abstractmethod
    def try_get_license(self) -> str:
        """License of the repository as reported by the host API."""

    def try_get_metadata(self) -> Metadata:
        try:
            content = self.try_get_file_content(MANIFEST_FILE)
        except MetadataError as exc:
            raise ManifestError(f"Failed to get {MANIFEST_FILE}") from exc

        metadata = metadata_from_manifest(content, self.remote.framework_crate)
        if metadata.license is None and self.remote.license_endpoint_fallback:
            try:
                metadata.license = self.try_get_license()
            except UnsupportedOperationError as exc:
                logger.debug(f"[{self.remote.service.lower()}] {exc}")
        return metadata
