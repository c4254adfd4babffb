"""Tests for MirrorPool and ResilientFetcher.

Tests verify:
- 403/418/429 advance the mirror cursor, 5xx and transport errors do not
- Linear backoff between attempts, none after the last
- Non-retryable 4xx fails immediately
- Exhaustion raises DataUnavailable carrying the last error
"""

import asyncio
from unittest.mock import AsyncMock

import aiohttp
import pytest

from radar.config import FetchSettings
from radar.exceptions import DataUnavailable
from radar.exchange.fetcher import ResilientFetcher
from radar.exchange.mirrors import MirrorPool

MIRRORS = ["https://mirror-a.test", "https://mirror-b.test", "https://mirror-c.test"]


def _make_fetcher(responses, max_retries: int = 3) -> tuple[ResilientFetcher, AsyncMock]:
    sleep = AsyncMock()
    fetcher = ResilientFetcher(
        MirrorPool(MIRRORS),
        FetchSettings(mirrors=MIRRORS, max_retries=max_retries, retry_base_delay=0.4),
        sleep=sleep,
    )
    fetcher._request = AsyncMock(side_effect=responses)
    return fetcher, sleep


class TestMirrorPool:
    """Rotation cursor behaviour."""

    def test_requires_mirrors(self):
        with pytest.raises(ValueError):
            MirrorPool([])

    def test_advance_wraps_around(self):
        pool = MirrorPool(["https://a.test/", "https://b.test"])

        assert pool.current == "https://a.test"
        assert pool.advance() == "https://b.test"
        assert pool.advance() == "https://a.test"
        assert pool.cursor == 2

    def test_single_mirror_stays_put(self):
        pool = MirrorPool(["https://only.test"])
        pool.advance()
        assert pool.current == "https://only.test"


class TestFetchJson:
    """Retry and rotation rules of fetch_json()."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fetcher, sleep = _make_fetcher([(200, '{"ok": true}')])

        assert await fetcher.fetch_json("/fapi/v1/ping") == {"ok": True}
        fetcher._request.assert_awaited_once_with("https://mirror-a.test/fapi/v1/ping", None)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limit_rotates_mirror(self):
        fetcher, sleep = _make_fetcher([(429, ""), (200, "[1, 2]")])

        result = await fetcher.fetch_json("/x", {"symbol": "BTCUSDT"})

        assert result == [1, 2]
        urls = [call.args[0] for call in fetcher._request.await_args_list]
        assert urls == ["https://mirror-a.test/x", "https://mirror-b.test/x"]
        assert fetcher.pool.cursor == 1
        sleep.assert_awaited_once_with(0.4)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [403, 418])
    async def test_ban_statuses_rotate(self, status):
        fetcher, _ = _make_fetcher([(status, ""), (200, "{}")])

        await fetcher.fetch_json("/x")

        assert fetcher.pool.current == "https://mirror-b.test"

    @pytest.mark.asyncio
    async def test_server_error_retries_same_mirror(self):
        fetcher, _ = _make_fetcher([(502, "bad gateway"), (200, "{}")])

        await fetcher.fetch_json("/x")

        urls = [call.args[0] for call in fetcher._request.await_args_list]
        assert urls == ["https://mirror-a.test/x", "https://mirror-a.test/x"]
        assert fetcher.pool.cursor == 0

    @pytest.mark.asyncio
    async def test_transport_errors_retry(self):
        fetcher, _ = _make_fetcher(
            [asyncio.TimeoutError(), aiohttp.ClientConnectionError("reset"), (200, "{}")]
        )

        assert await fetcher.fetch_json("/x") == {}
        assert fetcher.pool.cursor == 0

    @pytest.mark.asyncio
    async def test_malformed_json_retries(self):
        fetcher, _ = _make_fetcher([(200, "<html>"), (200, '{"a": 1}')])

        assert await fetcher.fetch_json("/x") == {"a": 1}

    @pytest.mark.asyncio
    async def test_client_error_fails_immediately(self):
        fetcher, sleep = _make_fetcher([(400, '{"code": -1121, "msg": "Invalid symbol."}')])

        with pytest.raises(DataUnavailable) as exc_info:
            await fetcher.fetch_json("/x")

        assert "HTTP 400" in str(exc_info.value)
        assert fetcher._request.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhaustion_raises_with_last_error(self):
        fetcher, sleep = _make_fetcher([(500, ""), (503, ""), (429, "")])

        with pytest.raises(DataUnavailable) as exc_info:
            await fetcher.fetch_json("/x")

        assert fetcher._request.await_count == 3
        assert exc_info.value.path == "/x"
        assert "HTTP 429" in exc_info.value.last_error
        assert [call.args[0] for call in sleep.await_args_list] == [
            pytest.approx(0.4),
            pytest.approx(0.8),
        ]

    @pytest.mark.asyncio
    async def test_zero_retries_still_attempts_once(self):
        fetcher, _ = _make_fetcher([(200, "{}")], max_retries=0)

        assert await fetcher.fetch_json("/x") == {}
