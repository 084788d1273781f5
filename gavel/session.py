from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from gavel.core import AuctionSource
from gavel.fetchers.http import HttpAuctionSource
from gavel.notify import NotificationHub
from gavel.reconcile import ReconciliationEngine
from gavel.scheduler import PollScheduler
from gavel.settings import Settings
from gavel.state import SessionStore
from gavel.submission import SubmissionCoordinator
from gavel.views import AuctionView, build_view


def http_source(settings: Settings) -> HttpAuctionSource:
    return HttpAuctionSource(
        settings.network.base_url,
        headers=settings.headers(),
        timeout=settings.polling.fetch_timeout_seconds,
    )


class Session:
    """One client: a store and the components that share it."""

    def __init__(
        self,
        settings: Settings,
        source: Optional[AuctionSource] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.settings = settings
        self.clock = clock
        self.source = source or http_source(settings)
        self.store = SessionStore(settings.identity)
        self.hub = NotificationHub()
        self.engine = ReconciliationEngine(self.store, clock)
        self.poller = PollScheduler(
            self.source,
            self.store,
            self.engine,
            self.hub,
            refresh_seconds=settings.polling.refresh_seconds,
            tick_seconds=settings.polling.tick_seconds,
            fetch_timeout=settings.polling.fetch_timeout_seconds,
            full_window=settings.full_window,
            clock=clock,
        )
        self.bids = SubmissionCoordinator(
            self.source,
            self.store,
            self.engine,
            self.hub,
            refresh=self.poller.refresh,
            celebration_seconds=settings.bidding.celebration_seconds,
            timeout=settings.bidding.submit_timeout_seconds,
            clock=clock,
        )

    def view(self, auction_id: str) -> Optional[AuctionView]:
        return build_view(
            self.store,
            auction_id,
            self.clock(),
            full_window=self.settings.full_window,
            top_n=self.settings.bidding.leaderboard_size,
        )

    async def bid(self, auction_id: str, amount: float):
        return await self.bids.submit(auction_id, amount, self.store.identity)
