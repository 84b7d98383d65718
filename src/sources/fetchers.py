"""
Data fetcher strategies for different payload types.

This module implements the DataFetcher strategies used by content sources:
JSON APIs, HTML pages (for scraping) and a mock for tests.
"""

import aiohttp
import logging
from typing import Any, Optional
import json


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = 'Lumen-Sigma/1.0'


class _SessionFetcher:
    """Shared aiohttp session handling for HTTP fetchers"""

    def __init__(self, timeout: float = 8.0):
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    def _build_headers(self, kwargs: dict[str, Any]) -> dict[str, str]:
        headers = dict(kwargs.get('headers') or {})
        headers.setdefault('User-Agent', DEFAULT_USER_AGENT)
        return headers

    async def close(self):
        """Close the HTTP session"""
        if self.session and not self.session.closed:
            await self.session.close()
            self.session = None


class JSONAPIFetcher(_SessionFetcher):
    """Fetcher for JSON API endpoints"""

    async def fetch(self, url: str, **kwargs) -> Any:
        """Fetch JSON data from the given URL"""
        session = await self._get_session()
        headers = self._build_headers(kwargs)

        try:
            async with session.get(url, headers=headers) as response:
                response.raise_for_status()
                # Some sources answer JSON with a text/html content type
                return await response.json(content_type=None)

        except aiohttp.ClientError as e:
            logger.error(f"HTTP error fetching {url}: {e}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"JSON decode error for {url}: {e}")
            raise


class HTMLPageFetcher(_SessionFetcher):
    """Fetcher for HTML pages that are scraped by the adapter"""

    async def fetch(self, url: str, **kwargs) -> Any:
        """Fetch the page body as text"""
        session = await self._get_session()
        headers = self._build_headers(kwargs)
        headers.setdefault('Accept', 'text/html,application/xhtml+xml')

        try:
            async with session.get(url, headers=headers) as response:
                response.raise_for_status()
                return await response.text()

        except aiohttp.ClientError as e:
            logger.error(f"HTTP error fetching page {url}: {e}")
            raise


class MockFetcher:
    """Mock fetcher for testing purposes"""

    def __init__(self, mock_data: Any = None, error: Optional[Exception] = None):
        self.mock_data = mock_data
        self.error = error
        self.requested_urls: list[str] = []
        self.closed = False

    async def fetch(self, url: str, **kwargs) -> Any:
        """Return mock data (or raise the configured error) for testing"""
        self.requested_urls.append(url)
        if self.error is not None:
            raise self.error
        return self.mock_data

    async def close(self):
        self.closed = True
