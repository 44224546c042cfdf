"""Cleanup Scheduler: fixed-interval sweeper for every TTL policy.

Invariants:
    - One tick runs immediately on start(), then one per interval until stop()
    - Ticks never overlap: run_tick() skips (returns None) while another tick holds the lock
    - A failing item is logged and skipped; a failing tick is logged and
      swallowed. The process never dies from cleanup, the next tick retries
    - Every deletion goes through the cascade protocol, which is idempotent,
      so a second scheduler process would be redundant but safe
    - All cutoffs in one tick derive from a single clock reading

Design Decisions:
    - Explicit object owning its asyncio.Task instead of module-level timer
      state: lifecycle is start()/stop() from the FastAPI lifespan
    - Injectable clock and public run_tick(): tests move time and drive ticks
      without sleeping
    - Schedule anchored on loop.time(): a slow tick shortens the next sleep
      rather than drifting, and missed slots are skipped, not queued
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import AsyncContextManager, Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from relay.config import Settings
from relay.core.clock import Clock, utc_now
from relay.core.retention import decrypted_invite_cutoff
from relay.services.broadcast_store import BroadcastStore
from relay.services.cascade import retire_invite
from relay.services.mailbox_store import MailboxStore

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


@dataclass
class TickReport:
    """What one tick removed."""
    decrypted_count: int = 0
    expired_count: int = 0
    inactive_count: int = 0
    failed_count: int = 0

    @property
    def total(self) -> int:
        return self.decrypted_count + self.expired_count + self.inactive_count


class CleanupScheduler:
    """Runs the invite and mailbox sweeps on a fixed interval."""

    def __init__(
        self,
        session_factory: SessionFactory,
        settings: Settings,
        clock: Clock = utc_now,
    ):
        self._session_factory = session_factory
        self._interval = settings.cleanup_interval_seconds
        self._grace_minutes = settings.decrypted_invite_grace_minutes
        self._inactivity_days = settings.mailbox_inactivity_days
        self._clock = clock
        self._tick_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer loop. No-op if already running. Needs a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="relay-cleanup")
        logger.info(f"Cleanup scheduler started (interval: {self._interval}s)")

    async def stop(self) -> None:
        """Cancel the timer loop and wait for it; an in-flight tick is cancelled too."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Cleanup scheduler stopped")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while True:
            await self.run_tick()
            next_run += self._interval
            now = loop.time()
            if next_run < now:
                skipped = int((now - next_run) // self._interval) + 1
                next_run += skipped * self._interval
            await asyncio.sleep(next_run - now)

    async def run_tick(self) -> TickReport | None:
        """Run one sweep. Returns None if skipped (overlap) or failed."""
        if self._tick_lock.locked():
            logger.warning("Cleanup tick skipped: previous tick still running")
            return None
        async with self._tick_lock:
            try:
                report = await self._tick()
            except Exception:
                logger.error("Cleanup tick failed; retrying next interval", exc_info=True)
                return None
        if report.total or report.failed_count:
            logger.info(
                f"Cleanup removed {report.decrypted_count} decrypted + "
                f"{report.expired_count} expired invites, "
                f"{report.inactive_count} inactive mailboxes",
                extra={
                    "decrypted_count": report.decrypted_count,
                    "expired_count": report.expired_count,
                    "inactive_count": report.inactive_count,
                    "failed_count": report.failed_count,
                },
            )
        return report

    async def _tick(self) -> TickReport:
        now = self._clock()
        report = TickReport()
        async with self._session_factory() as db:
            broadcasts = BroadcastStore(db, clock=lambda: now)
            mailboxes = MailboxStore(db, clock=lambda: now)

            decrypted = await broadcasts.find_invites_decrypted_before(
                decrypted_invite_cutoff(now, self._grace_minutes),
            )
            report.decrypted_count = await self._retire_each(
                decrypted, lambda i: retire_invite(db, i, now), report,
            )

            expired = await broadcasts.find_expired_invites(now)
            report.expired_count = await self._retire_each(
                expired, lambda i: retire_invite(db, i, now), report,
            )

            sweep = await mailboxes.sweep_inactive_mailboxes(self._inactivity_days)
            report.inactive_count = sweep.deleted
            report.failed_count += sweep.failed
        return report

    async def _retire_each(
        self,
        ids: list[UUID],
        retire: Callable[[UUID], Awaitable[bool]],
        report: TickReport,
    ) -> int:
        retired = 0
        for item_id in ids:
            try:
                if await retire(item_id):
                    retired += 1
            except Exception:
                report.failed_count += 1
                logger.warning("Cleanup item failed; will retry next tick", exc_info=True)
        return retired
