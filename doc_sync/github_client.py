"""Async GitHub REST client for revision comparison and file contents.

Only the two calls the diff fetcher needs. ``httpx.AsyncClient`` lets the
fetcher keep a whole batch of content requests in flight on one event loop.
"""

import base64
import binascii
import logging
from typing import List, Optional
from urllib.parse import quote

import httpx

from doc_sync.errors import RemoteFetchError
from doc_sync.security import PathValidator

logger = logging.getLogger(__name__)


class GitHubClient:
    """Client bound to one ``owner/repo``.

    Args:
        owner: Repository owner.
        repo: Repository name.
        token: Token used as ``Authorization: Bearer``.
        api_url: REST base URL, ``https://api.github.com`` on github.com.
        http_client: Pre-built ``httpx.AsyncClient`` (tests pass one with a
                     mock transport). Created lazily otherwise.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def _repo_url(self, suffix: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/{suffix}"

    # ----- comparison ------------------------------------------------------

    async def compare_commits(self, base: str, head: str) -> List[str]:
        """Return the changed file paths between two revisions, in API order."""
        url = self._repo_url(f"compare/{quote(base, safe='')}...{quote(head, safe='')}")
        try:
            response = await self.client.get(url, headers=self._headers())
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteFetchError(f"Failed to compare {base[:8]}...{head[:8]}: {exc}") from exc

        files = data.get("files") or []
        paths = [entry["filename"] for entry in files if entry.get("filename")]
        logger.info("Compare %s...%s: %d changed file(s)", base[:8], head[:8], len(paths))
        return paths

    # ----- contents --------------------------------------------------------

    async def get_file_content(self, path: str, ref: str) -> str:
        """Fetch and decode one file at ``ref``.

        Raises:
            RemoteFetchError: Transport/HTTP failure, unsafe path, or a
                response that does not carry decodable file content
                (directories, submodules, files over the API size limit).
        """
        is_valid, error, safe_path = PathValidator.validate_repo_path(path)
        if not is_valid:
            raise RemoteFetchError(f"{path}: {error}")

        url = self._repo_url(f"contents/{quote(safe_path)}")
        try:
            response = await self.client.get(
                url, params={"ref": ref}, headers=self._headers()
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteFetchError(f"{path}: {exc}") from exc

        if not isinstance(data, dict) or data.get("content") is None:
            raise RemoteFetchError(f"{path}: no retrievable content")
        if data.get("encoding", "base64") != "base64":
            raise RemoteFetchError(f"{path}: unsupported encoding {data.get('encoding')!r}")

        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise RemoteFetchError(f"{path}: cannot decode content: {exc}") from exc
