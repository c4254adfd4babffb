"""Telegram Bot API delivery for alert payloads."""

import asyncio

import aiohttp

from radar.config import TelegramSettings
from radar.logging import get_logger

logger = get_logger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramNotifier:
    """Best-effort sender for HTML alert messages.

    Delivery failures are logged and reported through the return value; they
    never propagate into the scan cycle.

    Args:
        settings: Bot token, chat id, and request timeout.
        api_base: Bot API base URL.
    """

    def __init__(self, settings: TelegramSettings, api_base: str = API_BASE) -> None:
        self._token = settings.token.get_secret_value().strip()
        self._chat_id = settings.chat_id.strip()
        self._enabled = settings.enabled
        self._timeout = aiohttp.ClientTimeout(total=settings.timeout_seconds)
        self._api_base = api_base.rstrip("/")

    def enabled(self) -> bool:
        return self._enabled and bool(self._token) and bool(self._chat_id)

    async def _post(self, url: str, payload: dict) -> tuple[int, str]:
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(url, json=payload) as resp:
                return resp.status, await resp.text()

    async def send(self, text: str) -> bool:
        """Send one HTML message to the configured chat.

        Returns:
            True if Telegram accepted the message, False if disabled or failed.
        """
        if not self.enabled():
            logger.debug("telegram_disabled")
            return False

        url = f"{self._api_base}/bot{self._token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            status, body = await self._post(url, payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("telegram_send_error", error=str(e))
            return False

        if status != 200:
            logger.warning("telegram_send_failed", status=status, body=body[:500])
            return False
        return True
