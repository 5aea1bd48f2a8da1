"""Static configuration for anime-herald.

All user-editable settings (destination, sources, keywords, polling, logging)
live in a single JSON file for quick edits without touching Python. Secrets
(bot tokens) come from the environment / .env file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from core.config import (
    DEFAULT_DISCUSSION_KEYWORDS,
    DEFAULT_DUB_KEYWORDS,
    DEFAULT_MONITORED_SERIES,
    ClassifierConfig,
    LedgerConfig,
    PollingConfig,
)
from core.models import NotificationTarget

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Where to store the SQLite database (ledger + watchlist).
DB_PATH = os.path.join(PROJECT_ROOT, "herald.db")

# Config lives next to the project so users can change the channel, keywords
# and feeds without editing code.
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

NOTIFICATION_METHODS = ("discord", "telegram_bot")


@dataclass(frozen=True)
class SourcesConfig:
    """Which feeds are polled and how much of each."""

    announcements_enabled: bool = True
    announcements_per_page: int = 10
    announcements_media_type: str = "ANIME"
    discussion_enabled: bool = True
    discussion_subreddit: str = "anime"
    discussion_limit: int = 15
    dubs_enabled: bool = True
    dub_subreddits: Tuple[str, ...] = ("Animedubs", "DubbedAnime", "anime_latino")
    dub_limit: int = 8


@dataclass(frozen=True)
class Settings:
    notification_method: str
    target: NotificationTarget
    polling: PollingConfig
    ledger: LedgerConfig
    classifier: ClassifierConfig
    sources: SourcesConfig
    logging: dict = field(default_factory=dict)
    db_path: str = DB_PATH


def _load_json_config(path: str) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _optional_id(value: Any) -> Optional[str]:
    # Ids may be written as JSON strings or numbers.
    if value is None or value == "":
        return None
    return str(value)


def _string_tuple(values: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if values is None:
        return default
    return tuple(str(value) for value in values if str(value).strip())


def _resolve_path(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _build_target(raw: dict) -> NotificationTarget:
    users = raw.get("opted_in_user_ids") or []
    return NotificationTarget(
        channel_id=_optional_id(raw.get("channel_id")),
        mention_role_id=_optional_id(raw.get("mention_role_id")),
        opted_in_user_ids=frozenset(str(user) for user in users),
    )


def _build_sources(raw: dict) -> SourcesConfig:
    announcements = raw.get("announcements", {})
    discussion = raw.get("discussion", {})
    dubs = raw.get("dubs", {})
    defaults = SourcesConfig()
    return SourcesConfig(
        announcements_enabled=bool(announcements.get("enabled", True)),
        announcements_per_page=int(announcements.get("per_page", defaults.announcements_per_page)),
        announcements_media_type=str(announcements.get("media_type", defaults.announcements_media_type)).upper(),
        discussion_enabled=bool(discussion.get("enabled", True)),
        discussion_subreddit=str(discussion.get("subreddit", defaults.discussion_subreddit)),
        discussion_limit=int(discussion.get("limit", defaults.discussion_limit)),
        dubs_enabled=bool(dubs.get("enabled", True)),
        dub_subreddits=_string_tuple(dubs.get("subreddits"), defaults.dub_subreddits),
        dub_limit=int(dubs.get("limit", defaults.dub_limit)),
    )


def settings_from_dict(config: dict) -> Settings:
    """Normalize a raw config mapping into Settings, filling defaults."""

    notifications = config.get("notifications", {})
    method = notifications.get("method", "discord")
    if method not in NOTIFICATION_METHODS:
        raise RuntimeError(f"notifications.method must be one of {', '.join(NOTIFICATION_METHODS)}")

    polling = config.get("polling", {})
    ledger = config.get("ledger", {})
    classifier = config.get("classifier", {})

    return Settings(
        notification_method=method,
        target=_build_target(notifications),
        polling=PollingConfig(
            interval_seconds=float(polling.get("interval_seconds", 600)),
            fetch_timeout_seconds=float(polling.get("fetch_timeout_seconds", 30)),
        ),
        ledger=LedgerConfig(
            capacity=int(ledger.get("capacity", 100)),
            persist=bool(ledger.get("persist", True)),
        ),
        classifier=ClassifierConfig(
            discussion_keywords=_string_tuple(classifier.get("discussion_keywords"), DEFAULT_DISCUSSION_KEYWORDS),
            monitored_series=_string_tuple(classifier.get("monitored_series"), DEFAULT_MONITORED_SERIES),
            dub_keywords=_string_tuple(classifier.get("dub_keywords"), DEFAULT_DUB_KEYWORDS),
        ),
        sources=_build_sources(config.get("sources", {})),
        logging=config.get("logging", {}),
        db_path=_resolve_path(config.get("db_path") or os.getenv("HERALD_DB_PATH")) or DB_PATH,
    )


def load_settings(path: Optional[str] = None) -> Settings:
    """Load config.json; HERALD_CONFIG overrides the default location."""

    return settings_from_dict(_load_json_config(path or os.getenv("HERALD_CONFIG") or CONFIG_PATH))
