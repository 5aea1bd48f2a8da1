"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for feeds, storage and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from core.models import Candidate, DispatchResult, Notification, NotificationTarget


class JsonTransport(Protocol):
    """The "fetch JSON" and "execute GraphQL" capability used by sources."""

    async def get_json(self, url: str) -> Any:
        ...

    async def graphql(self, url: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        ...


class SourcePort(Protocol):
    """A feed that yields fresh candidates on every call."""

    name: str

    async def fetch(self) -> List[Candidate]:
        ...


class NotifierPort(Protocol):
    """Notification delivery required by the dispatcher."""

    async def send(self, notification: Notification, target: NotificationTarget) -> DispatchResult:
        ...


class LedgerStorePort(Protocol):
    """Optional persistence for the dedup ledger."""

    def load_ledger(self) -> List[str]:
        ...

    def save_ledger(self, identities: List[str]) -> None:
        ...


class WatchlistStorePort(Protocol):
    """Optional persistence for followed series."""

    def load_watchlist(self) -> Dict[str, List[str]]:
        ...

    def add_watchlist_entry(self, category: str, name: str) -> None:
        ...


class CycleLockPort(Protocol):
    """Exclusive guard held for a whole cycle, shared across processes."""

    def acquire(self) -> bool:
        ...

    def release(self) -> None:
        ...
