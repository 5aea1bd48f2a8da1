"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

DEFAULT_DISCUSSION_KEYWORDS: Tuple[str, ...] = (
    "season 2",
    "sequel",
    "announced",
    "confirmed",
    "leak",
    "rumor",
    "adaptation",
    "trailer",
    "release date",
    "cancel",
    "renewed",
    "delay",
)

DEFAULT_MONITORED_SERIES: Tuple[str, ...] = (
    "one piece",
    "roshidere",
    "alya sometimes hides her feelings in russian",
    "the 100 girlfriends",
    "spy x family",
    "frieren",
    "chainsaw man",
    "jujutsu kaisen",
    "oshi no ko",
    "kaiju no. 8",
)

DEFAULT_DUB_KEYWORDS: Tuple[str, ...] = (
    "dub",
    "dubbed",
    "doblaje",
    "doblado",
    "latino",
    "español",
    "castellano",
    "voice cast",
    "seiyuu",
    "english dub",
    "latam dub",
)


@dataclass(frozen=True)
class ClassifierConfig:
    """Keyword and series lists used for relevance filtering."""

    discussion_keywords: Tuple[str, ...] = DEFAULT_DISCUSSION_KEYWORDS
    monitored_series: Tuple[str, ...] = DEFAULT_MONITORED_SERIES
    dub_keywords: Tuple[str, ...] = DEFAULT_DUB_KEYWORDS


@dataclass(frozen=True)
class PollingConfig:
    """Timer and per-adapter timeout settings for the scheduler."""

    interval_seconds: float = 600.0
    fetch_timeout_seconds: float = 30.0


@dataclass(frozen=True)
class LedgerConfig:
    """Deduplication ledger settings."""

    capacity: int = 100
    persist: bool = True
