"""
Holder-count service.

The holder count is not readable on-chain. It is scraped, best-effort, from
the block explorer's holder chart page, whose HTML embeds the chart series as
a literal of `[Date.UTC(y, m, d), count]` pairs; the last pair is the current
count.

Lookup order:
1. Cached value if younger than the TTL (no network call)
2. Fresh scrape, stored in the cache on success
3. Static fallback file holding a single positive integer
4. Unavailable
"""

import re
from pathlib import Path
from typing import Optional

import httpx

from fula_stats.shared.exceptions import (
    CacheReadError,
    ErrorKind,
    SourceUnavailableError,
)
from fula_stats.shared.logging import get_logger
from fula_stats.shared.results import Result
from fula_stats.shared.retry import HTTP_RETRY_CONFIG, RetryConfig
from fula_stats.shared.services.http_client import get_async_client
from fula_stats.utils.cache import FileCache

logger = get_logger(__name__)

SERIES_POINT = re.compile(
    r"\[\s*Date\.UTC\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*\)\s*,\s*(\d+)\s*\]"
)


def parse_holders_series(html: str) -> int:
    """
    Extract the most recent holder count from the explorer page.

    Raises:
        SourceUnavailableError: no series literal or a non-positive count
    """
    points = SERIES_POINT.findall(html)
    if not points:
        raise SourceUnavailableError("Holder chart series not found in page")
    count = int(points[-1])
    if count <= 0:
        raise SourceUnavailableError(f"Holder chart reported {count} holders")
    return count


def read_fallback_file(path: Path) -> int:
    """
    Read the static fallback: one integer, optional trailing whitespace.

    Raises:
        SourceUnavailableError: missing file, unparsable or non-positive value
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SourceUnavailableError(f"Fallback file {path} unreadable: {e}") from e

    try:
        count = int(text.strip())
    except ValueError as e:
        raise SourceUnavailableError(
            f"Fallback file {path} does not hold an integer"
        ) from e

    if count <= 0:
        raise SourceUnavailableError(f"Fallback file {path} holds {count}")
    return count


class HoldersService:
    """Cached, best-effort holder count."""

    def __init__(
        self,
        explorer_url: str,
        fallback_file: Path,
        cache: FileCache,
        cache_key: str = "fula_holders_count",
        ttl: float = 3600,
        client: Optional[httpx.AsyncClient] = None,
        retry_config: RetryConfig = HTTP_RETRY_CONFIG,
    ):
        self.explorer_url = explorer_url
        self.fallback_file = Path(fallback_file)
        self.cache = cache
        self.cache_key = cache_key
        self.ttl = ttl
        self._client = client
        self.retry_config = retry_config

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = get_async_client()
        return self._client

    async def _download(self) -> str:
        try:
            response = await self.client.get(self.explorer_url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SourceUnavailableError(
                f"Explorer page {self.explorer_url} failed: {e}"
            ) from e
        return response.text

    async def _scrape(self) -> int:
        html = await self.retry_config.run(
            self._download, operation_name="holders_page"
        )
        return parse_holders_series(html)

    async def get_holders_count(self) -> Result[int]:
        """Never raises; an unavailable count is a failed Result."""
        try:
            entry = await self.cache.get_entry(self.cache_key)
        except CacheReadError as e:
            logger.warning(str(e))
            entry = None

        if entry is not None and entry.is_fresh(self.ttl, self.cache.now()):
            if isinstance(entry.value, int) and entry.value > 0:
                logger.debug(
                    f"Holder count from cache "
                    f"({entry.age(self.cache.now()):.0f}s old)"
                )
                return Result.ok(entry.value)
            logger.warning(f"Ignoring cached holder count {entry.value!r}")

        try:
            count = await self._scrape()
        except SourceUnavailableError as e:
            logger.warning(f"Holder scrape failed, trying fallback file: {e}")
        else:
            try:
                await self.cache.set(self.cache_key, count)
            except OSError as e:
                logger.warning(f"Could not persist holder count: {e}")
            return Result.ok(count)

        try:
            count = read_fallback_file(self.fallback_file)
        except SourceUnavailableError as e:
            logger.warning(f"Holder count unavailable: {e}")
            return Result.fail_with_message(
                source="holders",
                message="Holder count unavailable",
                kind=ErrorKind.SOURCE_UNAVAILABLE,
                context={"fallback_file": str(self.fallback_file)},
                exception=e,
            )

        return Result.ok(count).add_warning(
            "holders",
            "Holder count read from fallback file",
            kind=ErrorKind.SOURCE_UNAVAILABLE,
        )
