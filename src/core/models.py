"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any feed- or chat-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union


class SourceKind(str, Enum):
    """Which kind of feed produced a candidate."""

    ANNOUNCEMENT = "announcement"
    DISCUSSION = "discussion"
    DUB = "dub"


@dataclass(frozen=True)
class Candidate:
    """One normalized news item, before relevance filtering."""

    kind: SourceKind
    title: str
    url: str
    image_url: Optional[str] = None
    subreddit: Optional[str] = None
    created_at: Optional[float] = None
    format: Optional[str] = None
    start_date: Optional[str] = None


@dataclass(frozen=True)
class NotificationTarget:
    """Destination channel plus optional mention configuration."""

    channel_id: Optional[str]
    mention_role_id: Optional[str] = None
    opted_in_user_ids: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class Notification:
    """Rendered message, independent of the delivery channel."""

    title: str
    content: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    color: Optional[int] = None
    fields: Tuple[EmbedField, ...] = ()


@dataclass(frozen=True)
class Sent:
    """Delivery confirmed by the sink."""

    message_id: Optional[str] = None


@dataclass(frozen=True)
class Failed:
    """Delivery did not happen; nothing should be recorded."""

    reason: str


DispatchResult = Union[Sent, Failed]


@dataclass
class CycleReport:
    """Counters collected during one poll cycle."""

    fetched: int = 0
    relevant: int = 0
    duplicates: int = 0
    sent: int = 0
    failed: int = 0
    evicted: int = 0
    failed_sources: list[str] = field(default_factory=list)
    skipped_reason: Optional[str] = None
