from typing import List, Optional
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..config import Settings
from ..exceptions import NotFoundError, TransportError, UnsupportedOperationError
from .base import check_host, path_segments
from .git import ContentResponse, GitRemoteClient, GitRepositoryClient, decode_content


class GitlabProject(BaseModel):
    id: int
    default_branch: str


_projects = TypeAdapter(List[GitlabProject])


class GitLabAdapter(GitRemoteClient):
    host = "gitlab.com"
    service = "GitLab"

    def __init__(self, token: str, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        # Not sent with requests: every project we look up is public.
        self.token = token
        super().__init__(settings=settings, client=client)

    def base_url(self) -> str:
        return str(self.settings.gitlab_base_url)

    def search_project_by_name(self, repository_name: str) -> List[GitlabProject]:
        """Finds projects by name, useful to get the project id and default branch."""
        data = self.get_json("/projects", params={"search": repository_name})
        try:
            return _projects.validate_python(data)
        except ValidationError as exc:
            raise TransportError("GitLab returned an unexpected project search response") from exc

    def try_get_repository_client(self, url: httpx.URL) -> "GitLabRepoClient":
        check_host(url, self.host, "GitLab repository")
        repository_name = path_segments(url, 2)[1]

        projects = self.search_project_by_name(repository_name)
        if not projects:
            raise NotFoundError(f"Failed to find gitlab repo: {repository_name}")
        project = projects[0]
        logger.debug(f"[gitlab] {repository_name} -> id={project.id} branch={project.default_branch}")
        return GitLabRepoClient(self, id=project.id, default_branch=project.default_branch)


class GitLabRepoClient(GitRepositoryClient):
    remote: GitLabAdapter

    def __init__(self, remote: GitLabAdapter, id: int, default_branch: str):
        super().__init__(remote)
        self.id = id
        self.default_branch = default_branch

    def try_get_file_content(self, file_path: str) -> str:
        response = self.remote.get_model(
            f"/projects/{self.id}/repository/files/{quote(file_path, safe='')}",
            ContentResponse,
            params={"ref": self.default_branch},
        )
        return decode_content(response)

    def try_get_license(self) -> str:
        raise UnsupportedOperationError("License fetching is not supported by GitLab.")
