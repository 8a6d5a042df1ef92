"""
Minimal GitLab REST client. Few assets live on GitLab, so the API is used anonymously
unless a token is configured.
"""
from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote
import httpx
from pydantic import BaseModel

from generate_assets.services.github_client import USER_AGENT, decode_content_envelope

logger = logging.getLogger(__name__)

GITLAB_PROJECTS_URL = "https://gitlab.com/api/v4/projects"


class GitlabProject(BaseModel):
    """Subset of a GitLab project search result."""

    id: int
    default_branch: Optional[str] = None
    path_with_namespace: Optional[str] = None


class GitlabClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITLAB_PROJECTS_URL,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url
        # A client passed in by the caller stays open on close().
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=30.0)
        self._headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if token:
            self._headers["PRIVATE-TOKEN"] = token

    def search_project_by_name(self, repository_name: str) -> List[GitlabProject]:
        """
        Find projects by name. Useful to get the project id and default branch.
        """
        logger.debug(f"Searching GitLab projects for {repository_name}")
        response = self._client.get(
            self.base_url,
            params={"search": repository_name},
            headers=self._headers,
        )
        response.raise_for_status()
        return [GitlabProject(**item) for item in response.json()]

    def get_content(self, project_id: int, default_branch: str, content_path: str) -> str:
        """Get the decoded content of a file from a GitLab project."""
        url = f"{self.base_url}/{project_id}/repository/files/{quote(content_path, safe='')}"
        logger.debug(f"GET {url}")
        response = self._client.get(
            url,
            params={"ref": default_branch},
            headers=self._headers,
        )
        response.raise_for_status()
        return decode_content_envelope(response.json())

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
