from typing import Dict, Optional

import httpx
from pydantic import BaseModel

from ..config import Settings
from .base import check_host, path_segments
from .git import ContentResponse, GitRemoteClient, GitRepositoryClient, decode_content


class GithubLicense(BaseModel):
    spdx_id: str


class GithubLicenseResponse(BaseModel):
    license: GithubLicense


class GitHubAdapter(GitRemoteClient):
    host = "github.com"
    service = "GitHub"

    def __init__(self, token: str, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.token = token
        super().__init__(settings=settings, client=client)

    def base_url(self) -> str:
        return str(self.settings.github_base_url)

    def headers(self) -> Dict[str, str]:
        headers = super().headers()
        headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def try_get_repository_client(self, url: httpx.URL) -> "GitHubRepoClient":
        check_host(url, self.host, "GitHub repository")
        segments = path_segments(url, 2)
        return GitHubRepoClient(self, username=segments[0], repository_name=segments[1])


class GitHubRepoClient(GitRepositoryClient):
    remote: GitHubAdapter

    def __init__(self, remote: GitHubAdapter, username: str, repository_name: str):
        super().__init__(remote)
        self.username = username
        self.repository_name = repository_name

    @property
    def full_name(self) -> str:
        return f"{self.username}/{self.repository_name}"

    def try_get_file_content(self, file_path: str) -> str:
        response = self.remote.get_model(
            f"/repos/{self.full_name}/contents/{file_path}", ContentResponse
        )
        return decode_content(response)

    def try_get_license(self) -> str:
        # a repository may have several licenses, the API only reports one
        response = self.remote.get_model(f"/repos/{self.full_name}/license", GithubLicenseResponse)
        return response.license.spdx_id
