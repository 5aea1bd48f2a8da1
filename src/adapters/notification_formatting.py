"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from typing import Any, Dict, List

from core.models import Notification, NotificationTarget


def build_discord_embed(notification: Notification) -> Dict[str, Any]:
    """Create the embed object used by the Discord adapter."""

    embed: Dict[str, Any] = {"title": notification.title}
    if notification.url:
        embed["url"] = notification.url
    if notification.description:
        embed["description"] = notification.description
    if notification.color is not None:
        embed["color"] = notification.color
    if notification.image_url:
        embed["image"] = {"url": notification.image_url}
    if notification.thumbnail_url:
        embed["thumbnail"] = {"url": notification.thumbnail_url}
    if notification.fields:
        embed["fields"] = [
            {"name": item.name, "value": item.value, "inline": item.inline}
            for item in notification.fields
        ]
    return embed


def build_discord_payload(notification: Notification, target: NotificationTarget) -> Dict[str, Any]:
    """Create the message body for POST /channels/{id}/messages."""

    # Only the configured role and users may be pinged, whatever the text says.
    allowed_roles: List[str] = [target.mention_role_id] if target.mention_role_id else []
    payload: Dict[str, Any] = {
        "embeds": [build_discord_embed(notification)],
        "allowed_mentions": {
            "parse": [],
            "roles": allowed_roles,
            "users": sorted(target.opted_in_user_ids),
        },
    }
    if notification.content:
        payload["content"] = notification.content
    return payload


def format_html(notification: Notification) -> str:
    """Create the HTML notification body used by the Bot API adapter."""

    title = html.escape(notification.title)
    parts = [f"<b>{title}</b>"]
    if notification.description:
        # Descriptions use Discord-style **bold**; Telegram gets plain text.
        parts.append(html.escape(notification.description.replace("**", "")))

    if notification.fields:
        parts.append("──────────────")
        for item in notification.fields:
            parts.append(f"<b>{html.escape(item.name)}:</b> {html.escape(item.value)}")

    if notification.url:
        safe_link = html.escape(notification.url)
        parts.extend(["", f"<a href=\"{safe_link}\">{safe_link}</a>"])

    return "\n".join(parts)
