"""GitLab backend"""

from __future__ import annotations

import httpx
import pytest

from conftest import encode, mock_client
from generate_assets.config import Settings
from generate_assets.datasources.gitlab_adapter import GitLabAdapter
from generate_assets.exceptions import (
    HostMismatchError,
    NotFoundError,
    TransportError,
    UnsupportedOperationError,
)


class FakeGitLab:
    """Records requests and answers the project search and file endpoints."""

    def __init__(self, projects: list[dict], files: dict[str, str] | None = None) -> None:
        self.projects = projects
        self.files = files or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/v4/projects":
            return httpx.Response(200, json=self.projects)
        prefix = "/api/v4/projects/42/repository/files/"
        if request.url.raw_path.decode().startswith(prefix):
            name = request.url.raw_path.decode()[len(prefix):].split("?")[0]
            if name in self.files:
                return httpx.Response(200, json={"encoding": "base64", "content": encode(self.files[name])})
        return httpx.Response(404, json={"message": "404 File Not Found"})


def make_adapter(settings: Settings, fake: FakeGitLab) -> GitLabAdapter:
    return GitLabAdapter("gl-token", settings=settings, client=mock_client(fake, "https://gitlab.com/api/v4"))


class TestGitLabAdapter:
    def test_search_resolves_id_and_branch(self, settings: Settings) -> None:
        fake = FakeGitLab([{"id": 42, "default_branch": "trunk"}, {"id": 7, "default_branch": "main"}])
        repo = make_adapter(settings, fake).try_get_repository_client(
            httpx.URL("https://gitlab.com/someone/bevy_plugin")
        )
        assert repo.id == 42
        assert repo.default_branch == "trunk"
        assert fake.requests[0].url.params["search"] == "bevy_plugin"

    def test_search_without_results(self, settings: Settings) -> None:
        adapter = make_adapter(settings, FakeGitLab([]))
        with pytest.raises(NotFoundError, match="Failed to find gitlab repo"):
            adapter.try_get_repository_client(httpx.URL("https://gitlab.com/someone/nothing"))

    def test_unexpected_search_response(self, settings: Settings) -> None:
        adapter = make_adapter(settings, FakeGitLab([{"name": "no id"}]))
        with pytest.raises(TransportError):
            adapter.try_get_repository_client(httpx.URL("https://gitlab.com/someone/thing"))

    def test_other_host(self, settings: Settings) -> None:
        adapter = make_adapter(settings, FakeGitLab([]))
        with pytest.raises(HostMismatchError, match="Not a GitLab"):
            adapter.try_get_repository_client(httpx.URL("https://github.com/a/b"))

    def test_token_not_sent(self, settings: Settings) -> None:
        adapter = GitLabAdapter("gl-token", settings=settings)
        assert "Authorization" not in adapter.headers()
        adapter.close()


class TestGitLabRepoClient:
    def test_file_content_uses_default_branch(self, settings: Settings) -> None:
        fake = FakeGitLab([{"id": 42, "default_branch": "trunk"}], {"Cargo.toml": "[package]\n"})
        repo = make_adapter(settings, fake).try_get_repository_client(httpx.URL("https://gitlab.com/a/b"))
        assert repo.try_get_file_content("Cargo.toml") == "[package]\n"
        assert fake.requests[-1].url.params["ref"] == "trunk"

    def test_nested_file_path_is_encoded(self, settings: Settings) -> None:
        fake = FakeGitLab([{"id": 42, "default_branch": "main"}], {"crates%2Fcore%2FCargo.toml": "x = 1\n"})
        repo = make_adapter(settings, fake).try_get_repository_client(httpx.URL("https://gitlab.com/a/b"))
        assert repo.try_get_file_content("crates/core/Cargo.toml") == "x = 1\n"

    def test_license_not_supported(self, settings: Settings) -> None:
        fake = FakeGitLab([{"id": 42, "default_branch": "main"}])
        repo = make_adapter(settings, fake).try_get_repository_client(httpx.URL("https://gitlab.com/a/b"))
        with pytest.raises(UnsupportedOperationError, match="not supported by GitLab"):
            repo.try_get_license()

    def test_metadata_without_license(self, settings: Settings) -> None:
        fake = FakeGitLab(
            [{"id": 42, "default_branch": "main"}],
            {"Cargo.toml": '[package]\nname = "plugin"\n\n[dependencies]\nbevy = "0.14"\n'},
        )
        metadata = make_adapter(settings, fake).try_get_repository_client(
            httpx.URL("https://gitlab.com/a/plugin")
        ).try_get_metadata()
        assert metadata.compatibility_version == "0.14"
        assert metadata.license is None

    def test_fallback_tolerates_missing_license_endpoint(self, tmp_path) -> None:
        settings = Settings(LICENSE_ENDPOINT_FALLBACK=True, CRATES_DB_PATH=str(tmp_path / "db"))
        fake = FakeGitLab([{"id": 42, "default_branch": "main"}], {"Cargo.toml": '[dependencies]\nbevy = "0.13"\n'})
        metadata = make_adapter(settings, fake).try_get_repository_client(
            httpx.URL("https://gitlab.com/a/plugin")
        ).try_get_metadata()
        assert metadata.license is None
        assert metadata.compatibility_version == "0.13"
