"""Process-wide state, passed explicitly instead of read from globals."""

from __future__ import annotations

from dataclasses import dataclass, field

from core.dedup import DedupLedger
from core.models import NotificationTarget
from core.watchlist import Watchlist


@dataclass
class BotContext:
    """State built once at startup and shared by reference.

    The ledger is only touched from inside a scheduler cycle.
    """

    target: NotificationTarget
    ledger: DedupLedger = field(default_factory=DedupLedger)
    watchlist: Watchlist = field(default_factory=Watchlist)
