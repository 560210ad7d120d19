import base64
import binascii
import logging
from datetime import timedelta
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from capture_sync.core.errors import FetchFailure, ParseFailure
from capture_sync.features.cache.service.ttl_cache import TTLCache
from ..domain.interfaces import IRepositoryApi

logger = logging.getLogger(__name__)

# GitHub answers 403 (and sometimes 429) once the hourly quota is spent
RATE_LIMIT_STATUSES = {403, 429}


def decode_content(payload: Any) -> str:
    """Decodes the base64 `content` field of a contents/readme response."""
    if not isinstance(payload, dict) or "content" not in payload:
        raise ParseFailure("File payload has no 'content' field")
    try:
        raw = base64.b64decode(payload["content"])
    except (binascii.Error, TypeError, ValueError) as e:
        raise ParseFailure(f"File content is not valid base64: {e}") from e
    return raw.decode("utf-8", errors="replace")


class GithubApi(IRepositoryApi):
    """
    GitHub REST adapter. Every GET goes through the TTL cache, keyed by its
    full URL, so a refresh within the TTL costs no requests and a rate-limited
    refresh still answers from stale data.
    """

    def __init__(self, cache: TTLCache, api_url: str = "https://api.github.com",
                 raw_url: str = "https://raw.githubusercontent.com", token: str = "",
                 timeout: float = 10.0, ttl: Optional[timedelta] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cache = cache
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.ttl = ttl
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, url: str) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport,
                                         headers=self._headers()) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise FetchFailure(f"Request to {url} failed: {e}", url=url) from e

        if response.status_code in RATE_LIMIT_STATUSES:
            raise FetchFailure("Rate limit exceeded", url=url,
                               status_code=response.status_code, rate_limited=True)
        if response.status_code >= 400:
            raise FetchFailure(f"HTTP error! status: {response.status_code}", url=url,
                               status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ParseFailure(f"Invalid JSON from {url}: {e}") from e

    async def _get_json(self, url: str) -> Any:
        return await self.cache.fetch_cached(url, lambda: self._request(url), self.ttl)

    def _contents_url(self, full_name: str, path: str, ref: str) -> str:
        return f"{self.api_url}/repos/{full_name}/contents/{quote(path)}?ref={quote(ref)}"

    async def get_repository(self, full_name: str) -> dict:
        data = await self._get_json(f"{self.api_url}/repos/{full_name}")
        if not isinstance(data, dict):
            raise ParseFailure(f"Unexpected repository payload for {full_name}")
        return data

    async def list_directory(self, full_name: str, path: str, ref: str) -> List[dict]:
        data = await self._get_json(self._contents_url(full_name, path, ref))
        if not isinstance(data, list):
            raise ParseFailure(f"{full_name}/{path} is not a directory")
        return data

    async def get_file_content(self, full_name: str, path: str, ref: str) -> str:
        data = await self._get_json(self._contents_url(full_name, path, ref))
        return decode_content(data)

    async def get_readme(self, full_name: str) -> str:
        data = await self._get_json(f"{self.api_url}/repos/{full_name}/readme")
        return decode_content(data)

    async def get_latest_release_tag(self, full_name: str) -> Optional[str]:
        try:
            data = await self._get_json(f"{self.api_url}/repos/{full_name}/releases/latest")
        except FetchFailure as e:
            if e.not_found:
                logger.info(f"{full_name} has no releases")
                return None
            raise
        if not isinstance(data, dict):
            raise ParseFailure(f"Unexpected release payload for {full_name}")
        return data.get("tag_name")

    def raw_file_url(self, full_name: str, branch: str, path: str) -> str:
        return f"{self.raw_url}/{full_name}/{branch}/{path}"
