"""Discord REST notification adapter.

Posts one embed per notification to the configured channel using a bot
token, without keeping a gateway connection open.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from adapters.notification_formatting import build_discord_payload
from core.models import DispatchResult, Failed, Notification, NotificationTarget, Sent

LOGGER = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"


class DiscordNotifier:
    """Notifier adapter that sends embeds through the Discord Bot API."""

    def __init__(self, session: aiohttp.ClientSession, bot_token: str, timeout: float = 10.0) -> None:
        self._session = session
        self._bot_token = bot_token
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _endpoint(self, channel_id: str) -> str:
        return f"{DISCORD_API_BASE}/channels/{channel_id}/messages"

    async def send(self, notification: Notification, target: NotificationTarget) -> DispatchResult:
        """Send the embed; any non-2xx answer is reported as Failed."""

        if not target.channel_id:
            return Failed(reason="no channel configured")

        headers = {
            "Authorization": f"Bot {self._bot_token}",
            "Content-Type": "application/json",
        }
        payload = build_discord_payload(notification, target)
        try:
            async with self._session.post(
                self._endpoint(target.channel_id),
                headers=headers,
                json=payload,
                timeout=self._timeout,
            ) as resp:
                if resp.status in (200, 201):
                    data = await resp.json(content_type=None)
                    return Sent(message_id=str(data.get("id")) if isinstance(data, dict) else None)
                error_text = await resp.text()
                return Failed(reason=f"Discord API error {resp.status}: {error_text[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            LOGGER.debug("Discord request raised", exc_info=True)
            return Failed(reason=f"Discord request failed: {exc.__class__.__name__}")
