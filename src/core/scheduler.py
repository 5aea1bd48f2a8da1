"""Poll scheduling with a manual override.

The timer and the manual trigger share one single-slot semaphore, so two
cycles never touch the ledger at the same time. Across processes the
processor's cycle lock does the same job.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.errors import CycleAlreadyRunning
from core.models import CycleReport
from core.processor import CycleProcessor

LOGGER = logging.getLogger(__name__)


class Scheduler:
    """Runs a cycle at startup and then every ``interval_seconds``."""

    def __init__(self, processor: CycleProcessor, interval_seconds: float = 600.0) -> None:
        self._processor = processor
        self._interval = interval_seconds
        self._slot = asyncio.Semaphore(1)
        self._task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._slot.locked()

    async def _guarded_cycle(self) -> CycleReport:
        try:
            return await self._processor.run_cycle()
        except CycleAlreadyRunning:
            raise
        except Exception:
            LOGGER.exception("Poll cycle failed")
            return CycleReport(skipped_reason="cycle_failed")

    async def _poll_forever(self) -> None:
        while True:
            async with self._slot:
                try:
                    await self._guarded_cycle()
                except CycleAlreadyRunning:
                    LOGGER.info("Another process is running a cycle; skipping this tick")
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        """Start the polling task; the first cycle runs right away."""

        if self._task is None or self._task.done():
            LOGGER.info("Polling every %ss", self._interval)
            self._task = asyncio.get_running_loop().create_task(self._poll_forever())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run_forever(self) -> None:
        await self.start()

    async def run_cycle_now(self, wait: bool = False) -> CycleReport:
        """Run one cycle on demand.

        Raises CycleAlreadyRunning when a cycle holds the slot, unless
        ``wait`` is set, in which case the call queues behind it. A cycle
        held by another process always raises.
        """

        if self._slot.locked() and not wait:
            raise CycleAlreadyRunning("A verification cycle is already running")
        async with self._slot:
            LOGGER.info("Manual verification started")
            return await self._guarded_cycle()

    async def force_verification(self) -> CycleReport:
        return await self.run_cycle_now()
