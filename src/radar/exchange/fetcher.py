"""Resilient JSON fetcher with bounded retries and mirror rotation.

Failure handling by class:
- 403 / 418 / 429 (blocked, banned, rate limited): rotate to the next mirror
- timeouts, connection errors, 5xx, malformed JSON: retry the same mirror
- any other 4xx: the request itself is wrong, fail immediately

Retries back off linearly (``retry_base_delay * attempt``). When attempts
run out the last error is wrapped in DataUnavailable.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from radar.config import FetchSettings
from radar.exceptions import DataUnavailable
from radar.exchange.mirrors import MirrorPool
from radar.logging import get_logger

logger = get_logger(__name__)

#: Statuses that mean this mirror refuses us for now.
ROTATE_STATUSES = frozenset({403, 418, 429})


class ResilientFetcher:
    """Fetches JSON documents from a MirrorPool over a shared aiohttp session.

    Args:
        pool: Mirror pool; its cursor is advanced on ban / rate-limit statuses.
        settings: Timeout, retry count, and backoff base.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        pool: MirrorPool,
        settings: FetchSettings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._pool = pool
        self._settings = settings
        self._sleep = sleep
        self._session: aiohttp.ClientSession | None = None

    @property
    def pool(self) -> MirrorPool:
        return self._pool

    async def close(self) -> None:
        """Close the shared session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _timeout(self) -> aiohttp.ClientTimeout:
        total = self._settings.timeout_seconds
        return aiohttp.ClientTimeout(total=total, connect=min(5.0, total))

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout())
        return self._session

    async def _request(self, url: str, params: dict[str, Any] | None) -> tuple[int, str]:
        """Perform one GET and return (status, body text)."""
        session = await self._get_session()
        async with session.get(url, params=params) as resp:
            return resp.status, await resp.text()

    async def fetch_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` from the current mirror and decode the JSON body.

        Args:
            path: Request path beginning with "/", appended to the mirror base URL.
            params: Query parameters.

        Returns:
            Decoded JSON body.

        Raises:
            DataUnavailable: On a non-retryable 4xx or once attempts are exhausted.
        """
        attempts = max(1, self._settings.max_retries)
        last_error = "no attempt made"

        for attempt in range(1, attempts + 1):
            mirror = self._pool.current
            try:
                status, text = await self._request(mirror + path, params)
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if status in ROTATE_STATUSES:
                    last_error = f"HTTP {status} from {mirror}"
                    self._pool.advance()
                elif status >= 500:
                    last_error = f"HTTP {status} from {mirror}"
                elif status >= 400:
                    logger.warning("fetch_rejected", path=path, status=status, body=text[:200])
                    raise DataUnavailable(
                        f"{path} rejected with HTTP {status}",
                        path=path,
                        last_error=text[:200],
                    )
                else:
                    try:
                        return json.loads(text)
                    except ValueError as e:
                        last_error = f"malformed JSON: {e}"

            if attempt < attempts:
                delay = self._settings.retry_base_delay * attempt
                logger.warning(
                    "fetch_retry",
                    path=path,
                    attempt=attempt,
                    max_retries=attempts,
                    delay=delay,
                    error=last_error,
                )
                await self._sleep(delay)

        logger.error("fetch_failed_permanently", path=path, attempts=attempts, error=last_error)
        raise DataUnavailable(
            f"{path} unavailable after {attempts} attempts",
            path=path,
            last_error=last_error,
        )
