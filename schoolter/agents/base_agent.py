"""Shared base class for the real-data agents.

Agents fetch public pages (Ofsted reports, performance tables, school
websites) with a polite delay between requests, retry transient failures,
and optionally keep raw responses on disk so repeated runs stay offline.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import pathlib
from abc import ABC, abstractmethod
from typing import Any

import httpx
from bs4 import BeautifulSoup

from schoolter.schemas.school import SchoolRecord

_MAX_RETRIES = 3
USER_AGENT = "Schoolter/0.1 (+https://schoolter.co.uk/data)"


class _HTTPCache:
    """Response bodies keyed by the SHA-256 of their URL."""

    def __init__(self, root: pathlib.Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, url: str) -> pathlib.Path:
        return self.root / (hashlib.sha256(url.encode()).hexdigest() + ".html")

    def get(self, url: str) -> str | None:
        path = self._path(url)
        return path.read_text(encoding="utf-8") if path.exists() else None

    def put(self, url: str, body: str) -> None:
        self._path(url).write_text(body, encoding="utf-8")


def _is_transient(exc: httpx.HTTPError) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class BaseAgent(ABC):
    """Abstract base class that every real-data agent inherits from.

    Subclasses implement :meth:`fetch`, which returns the facts found for one
    school or ``None`` when the page holds nothing usable.  HTTP failures
    propagate to the caller.

    Parameters
    ----------
    client:
        Shared :class:`httpx.AsyncClient`.  When omitted a short-lived client
        is opened per request.
    cache_dir:
        Directory for raw responses, or ``None`` to disable the disk cache.
    delay:
        Minimum seconds between live requests.
    timeout:
        Request timeout for agent-owned clients.
    backoff:
        Retry *n* waits ``backoff * 2**n`` seconds.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        cache_dir: str | None = None,
        delay: float = 1.0,
        timeout: float = 10.0,
        backoff: float = 1.0,
    ) -> None:
        self.client = client
        self.cache = _HTTPCache(pathlib.Path(cache_dir)) if cache_dir else None
        self.delay = delay
        self.timeout = timeout
        self.backoff = backoff
        self._next_request_at = 0.0
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    @abstractmethod
    async def fetch(self, school: SchoolRecord) -> Any | None:
        """Return the facts this agent can find for *school*, or ``None``."""

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def fetch_page(self, url: str) -> str:
        """Return the body of *url*, from the disk cache when possible.

        Transport errors and 5xx responses are retried with exponential
        backoff; a 4xx response raises :class:`httpx.HTTPStatusError` at
        once.  :class:`RuntimeError` is raised once retries run out.
        """
        if "://" not in url:
            url = "https://" + url

        if self.cache is not None:
            body = self.cache.get(url)
            if body is not None:
                self._logger.debug("Cache hit for %s", url)
                return body

        failure: httpx.HTTPError | None = None
        for attempt in range(1, _MAX_RETRIES + 1):
            await self._throttle()
            try:
                body = await self._attempt(url)
            except httpx.HTTPError as exc:
                if not _is_transient(exc):
                    self._logger.debug("%s answered %s; giving up", url, exc)
                    raise
                failure = exc
                pause = self.backoff * 2 ** (attempt - 1)
                self._logger.warning("Attempt %d/%d for %s failed (%s); next try in %.1fs",
                                     attempt, _MAX_RETRIES, url, exc, pause)
                await asyncio.sleep(pause)
                continue
            if self.cache is not None:
                self.cache.put(url, body)
            return body

        self._logger.error("Giving up on %s after %d attempts", url, _MAX_RETRIES)
        raise RuntimeError(f"Failed to fetch {url} after {_MAX_RETRIES} attempts") from failure

    async def _throttle(self) -> None:
        loop = asyncio.get_running_loop()
        wait = self._next_request_at - loop.time()
        if wait > 0:
            await asyncio.sleep(wait)
        self._next_request_at = loop.time() + self.delay

    async def _attempt(self, url: str) -> str:
        if self.client is None:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, headers={"User-Agent": USER_AGENT}
            ) as client:
                response = await client.get(url)
        else:
            response = await self.client.get(url)
        response.raise_for_status()
        return response.text

    # ------------------------------------------------------------------
    # HTML
    # ------------------------------------------------------------------

    def parse_html(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")

    @staticmethod
    def page_text(soup: BeautifulSoup) -> str:
        """Visible text of *soup* collapsed to single spaces."""
        return " ".join(soup.get_text(" ", strip=True).split())
