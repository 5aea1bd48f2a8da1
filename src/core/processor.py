"""Core poll-cycle pipeline.

This module is integration-agnostic. It only relies on ports for feeds,
storage and notifications, enabling other sinks or feeds without changes
here.

One cycle runs in a strict order:
1) Fast-exit when no destination channel is configured
2) Take the cross-process cycle lock and reload stored state
3) Fetch every source (concurrently, each under a timeout)
4) Classify each source's candidates, keeping fetch order
5) Ledger check, dispatch, then record on confirmed delivery
6) Trim the ledger to its bound, persist it and release the lock
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from core.context import BotContext
from core.dedup import candidate_identity
from core.dispatcher import Dispatcher
from core.errors import CycleAlreadyRunning, TransportError
from core.models import Candidate, CycleReport, Sent
from core.ports import CycleLockPort, LedgerStorePort, SourcePort, WatchlistStorePort
from core.rules_engine import Classifier

LOGGER = logging.getLogger(__name__)


class CycleProcessor:
    """Orchestrates fetching, classification, dedup and dispatch."""

    def __init__(
        self,
        context: BotContext,
        sources: Iterable[SourcePort],
        classifier: Classifier,
        dispatcher: Dispatcher,
        fetch_timeout: Optional[float] = 30.0,
        ledger_store: Optional[LedgerStorePort] = None,
        watchlist_store: Optional[WatchlistStorePort] = None,
        cycle_lock: Optional[CycleLockPort] = None,
    ) -> None:
        self._context = context
        self._sources = list(sources)
        self._classifier = classifier
        self._dispatcher = dispatcher
        self._fetch_timeout = fetch_timeout
        self._ledger_store = ledger_store
        self._watchlist_store = watchlist_store
        self._cycle_lock = cycle_lock

    async def _fetch(self, source: SourcePort, report: CycleReport) -> List[Candidate]:
        """Fetch one source; any failure degrades to an empty batch."""

        try:
            return list(await asyncio.wait_for(source.fetch(), timeout=self._fetch_timeout))
        except asyncio.TimeoutError:
            LOGGER.warning("Source %s timed out after %ss", source.name, self._fetch_timeout)
        except TransportError as exc:
            LOGGER.warning("Source %s failed: %s", source.name, exc)
        except Exception:
            LOGGER.exception("Source %s raised while fetching", source.name)
        report.failed_sources.append(source.name)
        return []

    def _reload_state(self) -> None:
        # Another process may have announced items since this one last saved.
        if self._ledger_store is not None:
            self._context.ledger.replace(self._ledger_store.load_ledger())
        if self._watchlist_store is not None:
            self._context.watchlist.replace(self._watchlist_store.load_watchlist())

    async def run_cycle(self) -> CycleReport:
        """Run one poll, filter, dedup and dispatch pass.

        Raises CycleAlreadyRunning when another process holds the cycle lock.
        """

        report = CycleReport()
        target = self._context.target
        if not target.channel_id:
            LOGGER.warning("News channel is not configured; skipping cycle")
            report.skipped_reason = "channel_not_configured"
            return report

        if self._cycle_lock is not None and not self._cycle_lock.acquire():
            raise CycleAlreadyRunning("A verification cycle is already running in another process")
        try:
            self._reload_state()
            await self._dispatch_new(report)
        finally:
            if self._cycle_lock is not None:
                self._cycle_lock.release()

        LOGGER.info(
            "Cycle complete: fetched=%s, relevant=%s, duplicates=%s, sent=%s, failed=%s, evicted=%s",
            report.fetched,
            report.relevant,
            report.duplicates,
            report.sent,
            report.failed,
            report.evicted,
        )
        return report

    async def _dispatch_new(self, report: CycleReport) -> None:
        target = self._context.target
        # Results come back in source order regardless of which fetch finished first.
        batches = await asyncio.gather(*(self._fetch(source, report) for source in self._sources))

        ledger = self._context.ledger
        try:
            for candidates in batches:
                report.fetched += len(candidates)
                relevant = self._classifier.filter(candidates)
                report.relevant += len(relevant)
                for candidate in relevant:
                    identity = candidate_identity(candidate)
                    # Checked right before each send so repeats inside one
                    # batch are dispatched once.
                    if ledger.contains(identity):
                        report.duplicates += 1
                        continue
                    result = await self._dispatcher.dispatch(candidate, target)
                    if isinstance(result, Sent):
                        ledger.record(identity)
                        report.sent += 1
                    else:
                        report.failed += 1
        finally:
            # Whatever was sent before a failure stays recorded.
            report.evicted = ledger.trim()
            if self._ledger_store is not None:
                self._ledger_store.save_ledger(ledger.snapshot())
