import asyncio, logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from gavel.core import AuctionSource, NetworkFailure
from gavel.notify import NotificationHub
from gavel.reconcile import OutbidEvent, ReconciliationEngine
from gavel.state import SessionStore
from gavel.timewindow import DEFAULT_WINDOW, TimeWindow, evaluate

log = logging.getLogger("gavel")

REFRESH_JOB = "refresh"
TICK_JOB = "tick"


class PollScheduler:
    """Snapshot refresh and countdown tick, on independent cadences."""

    def __init__(
        self,
        source: AuctionSource,
        store: SessionStore,
        engine: ReconciliationEngine,
        hub: NotificationHub,
        *,
        refresh_seconds: float = 3,
        tick_seconds: float = 1,
        fetch_timeout: float = 10,
        full_window: timedelta = DEFAULT_WINDOW,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.source = source
        self.store = store
        self.engine = engine
        self.hub = hub
        self.refresh_seconds = refresh_seconds
        self.tick_seconds = tick_seconds
        self.fetch_timeout = fetch_timeout
        self.full_window = full_window
        self.clock = clock
        self.failures = 0
        self._refresh_lock = asyncio.Lock()
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def refresh(self) -> Optional[list[OutbidEvent]]:
        """One fetch + reconcile pass; ``None`` if the fetch failed."""
        async with self._refresh_lock:
            try:
                auctions = await asyncio.wait_for(
                    self.source.fetch_snapshot(), self.fetch_timeout
                )
            except (NetworkFailure, asyncio.TimeoutError) as exc:
                self.failures += 1
                log.warning(
                    "Snapshot refresh failed (%d in a row), keeping stale data: %s",
                    self.failures,
                    str(exc) or "timed out",
                )
                return None
            self.failures = 0
            events = self.engine.apply(auctions)
        log.debug("Refreshed %d auctions", len(auctions))
        for event in events:
            self.hub.publish(event)
        return events

    def tick(self) -> dict[str, TimeWindow]:
        now = self.clock()
        windows = {
            auction_id: evaluate(auction.end_time, now, self.full_window)
            for auction_id, auction in self.store.snapshot.items()
        }
        self.store.windows = windows
        return windows

    async def _tick_job(self):
        self.tick()

    def start(self):
        if self.running:
            return
        scheduler = AsyncIOScheduler(timezone="UTC")
        scheduler.add_job(
            self.refresh,
            "interval",
            seconds=self.refresh_seconds,
            next_run_time=datetime.now(timezone.utc),
            id=REFRESH_JOB,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=30,
        )
        scheduler.add_job(
            self._tick_job,
            "interval",
            seconds=self.tick_seconds,
            next_run_time=datetime.now(timezone.utc),
            id=TICK_JOB,
            coalesce=True,
            max_instances=1,
        )
        scheduler.start()
        self._scheduler = scheduler
        log.info(
            "Polling every %ss, ticking every %ss",
            self.refresh_seconds,
            self.tick_seconds,
        )

    def stop(self):
        if self._scheduler is None:
            return
        self._scheduler.remove_all_jobs()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.info("Polling stopped")
