"""Rendering and delivery of one candidate (core domain).

Rendering is channel-agnostic; adapters turn a Notification into a Discord
embed or a Telegram HTML message.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlparse

from core.errors import TransportError
from core.models import (
    Candidate,
    DispatchResult,
    EmbedField,
    Failed,
    Notification,
    NotificationTarget,
    SourceKind,
)
from core.ports import NotifierPort
from core.watchlist import Watchlist

LOGGER = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpeg", ".jpg", ".gif", ".png", ".webp")
TRUSTED_IMAGE_HOSTS = (
    "i.redd.it",
    "preview.redd.it",
    "external-preview.redd.it",
    "redditmedia.com",
    "i.imgur.com",
    "s4.anilist.co",
    "cdn.myanimelist.net",
    "media.discordapp.net",
    "cdn.discordapp.com",
)

# Discord rejects embed titles longer than this.
TITLE_LIMIT = 256

_TITLES = {
    SourceKind.ANNOUNCEMENT: "🎊 Nuevo anuncio",
    SourceKind.DISCUSSION: "📰",
    SourceKind.DUB: "🎙️",
}

_COLORS = {
    SourceKind.ANNOUNCEMENT: 0x00FF00,
    SourceKind.DISCUSSION: 0xFF4500,
    SourceKind.DUB: 0x9B59B6,
}


def is_allowed_image(url: Optional[str]) -> bool:
    """Return True when the URL points at something a chat client can embed."""

    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return False
    if parsed.path.lower().endswith(IMAGE_EXTENSIONS):
        return True
    host = parsed.netloc.lower()
    return any(trusted in host for trusted in TRUSTED_IMAGE_HOSTS)


def build_mentions(target: NotificationTarget) -> Optional[str]:
    """Role mention first, then every opted-in user; None when there are none."""

    parts: List[str] = []
    if target.mention_role_id:
        parts.append(f"<@&{target.mention_role_id}>")
    parts.extend(f"<@{user_id}>" for user_id in sorted(target.opted_in_user_ids))
    if not parts:
        return None
    return " ".join(parts)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def render_notification(
    candidate: Candidate,
    target: NotificationTarget,
    watchlist: Optional[Watchlist] = None,
) -> Notification:
    """Build the notification for one candidate."""

    image_url = candidate.image_url if is_allowed_image(candidate.image_url) else None
    fields: List[EmbedField] = []

    if candidate.kind is SourceKind.ANNOUNCEMENT:
        title = _TITLES[candidate.kind]
        description = f"**{candidate.title}**"
        if candidate.format:
            fields.append(EmbedField("Formato", candidate.format))
        if candidate.start_date:
            fields.append(EmbedField("Estreno", candidate.start_date))
    else:
        title = _truncate(f"{_TITLES[candidate.kind]} {candidate.title}", TITLE_LIMIT)
        description = f"r/{candidate.subreddit}" if candidate.subreddit else None

    if watchlist is not None:
        followed = watchlist.find_mentioned(candidate.title)
        if followed:
            fields.append(EmbedField("📌 Serie seguida", ", ".join(followed), inline=False))

    return Notification(
        title=title,
        content=build_mentions(target),
        url=candidate.url or None,
        description=description,
        image_url=image_url,
        color=_COLORS[candidate.kind],
        fields=tuple(fields),
    )


class Dispatcher:
    """Renders a candidate and hands it to the configured notifier."""

    def __init__(self, notifier: NotifierPort, watchlist: Optional[Watchlist] = None) -> None:
        self._notifier = notifier
        self._watchlist = watchlist

    async def dispatch(self, candidate: Candidate, target: NotificationTarget) -> DispatchResult:
        notification = render_notification(candidate, target, self._watchlist)
        try:
            result = await self._notifier.send(notification, target)
        except TransportError as exc:
            result = Failed(reason=str(exc))

        if isinstance(result, Failed):
            LOGGER.warning("Delivery failed for %r: %s", candidate.title, result.reason)
        else:
            LOGGER.info("Sent %s notification %r", candidate.kind.value, candidate.title)
        return result
