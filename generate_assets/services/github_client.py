"""
Minimal GitHub REST client used to read manifests and licenses of asset repositories.
"""
from __future__ import annotations

import base64
import logging
from typing import Optional
import httpx

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
USER_AGENT = "bevy-website-generate-assets"


def decode_content_envelope(payload: dict) -> str:
    """
    Decode a ``{"encoding": ..., "content": ...}`` file envelope.

    Both GitHub and GitLab return file contents base64 encoded, wrapped at 60 columns.
    """
    encoding = payload.get("encoding")
    if encoding != "base64":
        raise ValueError(f"Content is not in base64 (encoding={encoding!r})")
    content = (payload.get("content") or "").replace("\n", "").strip()
    return base64.b64decode(content).decode("utf-8")


class GithubClient:
    """Blocking GitHub client authenticated with a bearer token."""

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_URL,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url
        # A client passed in by the caller stays open on close().
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=30.0)
        self._headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "Authorization": f"Bearer {token}",
        }

    def _get_json(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        response = self._client.get(url, headers=self._headers)
        response.raise_for_status()
        return response.json()

    def get_content(self, username: str, repository_name: str, content_path: str) -> str:
        """Get the decoded content of a file from a GitHub repository's default branch."""
        payload = self._get_json(f"/repos/{username}/{repository_name}/contents/{content_path}")
        return decode_content_envelope(payload)

    def get_license(self, username: str, repository_name: str) -> str:
        """
        Get the SPDX identifier of a repository's license.

        GitHub can detect several licenses, but the API only reports one.
        """
        payload = self._get_json(f"/repos/{username}/{repository_name}/license")
        return payload["license"]["spdx_id"]

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
