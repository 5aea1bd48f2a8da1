"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so notifications can be routed to a Telegram
channel instead of Discord. Role and user mentions are Discord concepts and
are not carried over.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from adapters.notification_formatting import format_html
from core.models import DispatchResult, Failed, Notification, NotificationTarget, Sent

LOGGER = logging.getLogger(__name__)


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, session: aiohttp.ClientSession, bot_token: str, timeout: float = 10.0) -> None:
        self._session = session
        self._bot_token = bot_token
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    async def send(self, notification: Notification, target: NotificationTarget) -> DispatchResult:
        """Send the formatted notification via the Bot API."""

        if not target.channel_id:
            return Failed(reason="no chat configured")

        payload = {
            "chat_id": target.channel_id,
            "text": format_html(notification),
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            async with self._session.post(self._endpoint(), json=payload, timeout=self._timeout) as resp:
                body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            LOGGER.debug("Bot API request raised", exc_info=True)
            return Failed(reason=f"Bot API request failed: {exc.__class__.__name__}")

        if resp.status != 200 or not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else body
            return Failed(reason=f"Bot API error {resp.status}: {description}")
        result = body.get("result")
        message_id = result.get("message_id") if isinstance(result, dict) else None
        return Sent(message_id=str(message_id) if message_id is not None else None)
