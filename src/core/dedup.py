"""Deduplication helpers (core domain)."""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, List

from core.models import Candidate, SourceKind

_IDENTITY_PREFIXES = {
    SourceKind.ANNOUNCEMENT: "anuncio_",
    SourceKind.DISCUSSION: "reddit_",
    SourceKind.DUB: "doblaje_",
}


def format_epoch(value: float) -> str:
    """Render an epoch timestamp the way the feed prints it."""

    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def candidate_identity(candidate: Candidate) -> str:
    """Return the dedup key for a candidate.

    Announcements are keyed by title; feed posts are keyed by their creation
    time. A retitled announcement therefore shows up as a new item.
    """

    prefix = _IDENTITY_PREFIXES[candidate.kind]
    if candidate.kind is SourceKind.ANNOUNCEMENT:
        return f"{prefix}{candidate.title}"

    if candidate.created_at is None:
        raise ValueError(f"{candidate.kind.value} candidate has no created_at: {candidate.title!r}")
    return f"{prefix}{format_epoch(candidate.created_at)}"


class DedupLedger:
    """Bounded, insertion-ordered record of announced identities.

    Recording never evicts on its own; callers run ``trim()`` once the batch
    is done so a cycle sees a stable view of what was already announced.
    """

    def __init__(self, capacity: int = 100, identities: Iterable[str] = ()) -> None:
        if capacity < 1:
            raise ValueError("Ledger capacity must be at least 1")
        self._capacity = capacity
        self._entries: "OrderedDict[str, None]" = OrderedDict()
        for identity in identities:
            self.record(identity)
        self.trim()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, identity: str) -> bool:
        return identity in self._entries

    __contains__ = contains

    def record(self, identity: str) -> None:
        """Append an identity as the most recent entry."""

        if identity in self._entries:
            return
        self._entries[identity] = None

    def trim(self) -> int:
        """Evict the oldest identities until the bound holds; return how many."""

        evicted = 0
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)
            evicted += 1
        return evicted

    def replace(self, identities: Iterable[str]) -> None:
        """Swap the contents for a stored snapshot, oldest first."""

        self._entries.clear()
        for identity in identities:
            self.record(identity)
        self.trim()

    def snapshot(self) -> List[str]:
        """Return identities oldest-first."""

        return list(self._entries)
