"""Shared base class for government data services.

Downloads published files (the GIAS establishments CSV) into a local
location with retries, a freshness window and atomic replacement, and
defines the error raised when input data cannot be obtained at all.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from pathlib import Path

import httpx

_HTTP_TIMEOUT = 120.0
_MAX_RETRIES = 3
_BACKOFF_SECONDS = 1.0
_CHUNK_SIZE = 1 << 16
_USER_AGENT = "Schoolter/0.1 (Education Data Pipeline)"


class InputDataError(RuntimeError):
    """Input data is missing or unreadable; the pipeline cannot continue."""


class BaseGovDataService:
    """Base class for services that pull published government data files.

    Parameters
    ----------
    cache_dir:
        Directory downloads land in.
    cache_ttl_hours:
        A downloaded file younger than this is reused instead of fetched again.
    backoff:
        Base backoff in seconds; attempt *n* waits ``backoff * 2**n``.
    client:
        Optional pre-built ``httpx.Client``; a short-lived one is created per
        download otherwise.
    """

    def __init__(
        self,
        cache_dir: Path | str,
        cache_ttl_hours: int = 24,
        backoff: float = _BACKOFF_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_ttl = timedelta(hours=cache_ttl_hours)
        self.backoff = backoff
        self._client = client
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    def is_fresh(self, path: Path) -> bool:
        """True if *path* exists and was written within the TTL."""
        if not path.exists():
            return False
        age = datetime.now() - datetime.fromtimestamp(path.stat().st_mtime)
        return age < self.cache_ttl

    def fetch_to(self, url: str, dest: Path, force: bool = False) -> Path:
        """Stream *url* into *dest*, replacing it only once the body is complete.

        A 404 is final for that URL; other failures are retried with
        exponential backoff.

        Raises
        ------
        RuntimeError
            If the file could not be downloaded.
        """
        if not force and self.is_fresh(dest):
            self._logger.info("Using cached file: %s", dest)
            return dest

        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_name(dest.name + ".part")
        last_exc: Exception | None = None

        for attempt in range(_MAX_RETRIES):
            self._logger.info("Downloading %s (attempt %d/%d)", url, attempt + 1, _MAX_RETRIES)
            try:
                size = self._stream(url, partial)
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                if exc.response.status_code == 404:
                    break
            except httpx.TransportError as exc:
                last_exc = exc
            else:
                partial.replace(dest)
                self._logger.info("Downloaded %.1f MB -> %s", size / 1_048_576, dest)
                return dest

            wait = self.backoff * 2**attempt
            self._logger.warning("Download of %s failed: %s; retrying in %.1fs", url, last_exc, wait)
            time.sleep(wait)

        partial.unlink(missing_ok=True)
        raise RuntimeError(f"Failed to download {url}") from last_exc

    def first_available(self, urls: list[str], dest: Path, force: bool = False) -> Path:
        """Try *urls* in order, returning the first successful download.

        Raises
        ------
        RuntimeError
            If every URL fails.
        """
        last_exc: Exception | None = None
        for url in urls:
            try:
                return self.fetch_to(url, dest, force=force)
            except RuntimeError as exc:
                self._logger.warning("URL failed: %s (%s)", url, exc)
                last_exc = exc
        raise RuntimeError(f"All {len(urls)} download URLs failed") from last_exc

    def _stream(self, url: str, path: Path) -> int:
        if self._client is not None:
            return self._stream_with(self._client, url, path)
        with httpx.Client(
            timeout=_HTTP_TIMEOUT,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
        ) as client:
            return self._stream_with(client, url, path)

    @staticmethod
    def _stream_with(client: httpx.Client, url: str, path: Path) -> int:
        size = 0
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with path.open("wb") as handle:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    handle.write(chunk)
                    size += len(chunk)
        return size
