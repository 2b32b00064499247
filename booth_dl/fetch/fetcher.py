"""
Fetches single files over HTTP. Every fetch ends as a value: either a
`FetchSuccess` carrying the payload and resolved filename, or a `FetchFailure`.
"""

import asyncio
import logging

import aiohttp

from booth_dl import __version__
from booth_dl.models.outcome import FetchFailure, FetchOutcome, FetchSuccess
from booth_dl.utils.formatting import format_size

from .filename import format_headers, resolve_filename

log = logging.getLogger(__name__)

USER_AGENT = f"booth-dl/{__version__}"

# Large files must be allowed to run to completion.
NO_DEADLINE = aiohttp.ClientTimeout(total=None, sock_connect=None, sock_read=None)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


def create_session(
    max_connections: int = 20, cookie: str | None = None
) -> aiohttp.ClientSession:
    """Creates a ClientSession configured for long-running downloads."""
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        ttl_dns_cache=600,
        keepalive_timeout=30,
        enable_cleanup_closed=True,
    )
    headers = {"User-Agent": USER_AGENT}
    if cookie:
        headers["Cookie"] = cookie
    return aiohttp.ClientSession(
        connector=connector, timeout=NO_DEADLINE, headers=headers
    )


async def get_connection_pool(
    max_connections: int = 20, cookie: str | None = None
) -> aiohttp.ClientSession:
    """
    Gets or creates the shared aiohttp ClientSession used for downloads.

    Only one pool is created for the lifetime of the application run.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool
        _connection_pool = create_session(max_connections, cookie)
        log.debug(f"Created download pool with limit={max_connections}")
    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared downloader connection pool closed.")


class Fetcher:
    """
    Retrieves one resource per call.

    Only transport errors are retried (when `max_attempts` > 1); a non-2xx
    status is final.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        max_attempts: int = 1,
        base_delay: float = 1.5,
        max_connections: int = 20,
        cookie: str | None = None,
    ):
        self._session = session
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_connections = max_connections
        self.cookie = cookie

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        return await get_connection_pool(self.max_connections, self.cookie)

    async def fetch(self, locator: str) -> FetchOutcome:
        """Downloads `locator` and classifies the result."""
        log.debug(f"Downloading: {locator}")
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._get_session()
                async with session.get(locator, allow_redirects=True) as response:
                    if not 200 <= response.status < 300:
                        return FetchFailure(
                            locator,
                            f"Failed to download: HTTP {response.status}",
                            status=response.status,
                        )
                    payload = await response.read()
                    filename = resolve_filename(
                        format_headers(response.headers), str(response.url), locator
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                last_error = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{locator}' failed: {e!r}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
                continue

            log.info(f"Downloaded: {filename} ({format_size(len(payload))})")
            return FetchSuccess(locator, filename, payload)

        return FetchFailure(locator, f"{type(last_error).__name__}: {last_error}")

    __call__ = fetch
