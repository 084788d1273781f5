from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Union

from gavel.core import (
    Accepted,
    AuctionSource,
    BidRejected,
    ErrorKind,
    NetworkFailure,
    Rejected,
)
from gavel.notify import BidAccepted, NotificationHub
from gavel.reconcile import ReconciliationEngine
from gavel.state import SessionStore
from gavel.validator import validate

log = logging.getLogger("gavel.submission")

SubmitResult = Union[Accepted, Rejected]


class SubmissionCoordinator:
    """Sends bids, at most one in flight per auction."""

    def __init__(
        self,
        source: AuctionSource,
        store: SessionStore,
        engine: ReconciliationEngine,
        hub: NotificationHub,
        *,
        refresh: Optional[Callable[[], Awaitable[object]]] = None,
        celebration_seconds: float = 3,
        timeout: float = 10,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.source = source
        self.store = store
        self.engine = engine
        self.hub = hub
        self.refresh = refresh
        self.celebration = timedelta(seconds=celebration_seconds)
        self.timeout = timeout
        self.clock = clock
        self._in_flight: set[str] = set()
        self._celebrating: dict[str, datetime] = {}

    def in_flight(self, auction_id: str) -> bool:
        return auction_id in self._in_flight

    def celebrating(self, auction_id: str) -> bool:
        until = self._celebrating.get(auction_id)
        if until is None:
            return False
        if self.clock() >= until:
            del self._celebrating[auction_id]
            return False
        return True

    async def submit(
        self, auction_id: str, amount: float, bidder: Optional[str]
    ) -> SubmitResult:
        if not bidder:
            return Rejected(ErrorKind.UNAUTHENTICATED, "Please log in to place a bid")

        auction = self.store.auction(auction_id)
        if auction is None:
            return Rejected(ErrorKind.INVALID_INPUT, f"Unknown auction {auction_id!r}")

        rejected = validate(amount, auction.current_highest_bid)
        if rejected is not None:
            return rejected

        if auction_id in self._in_flight or self.celebrating(auction_id):
            return Rejected(
                ErrorKind.SUBMISSION_IN_PROGRESS,
                f"A bid on {auction.name} is already being placed",
            )

        amount = float(amount)
        self._in_flight.add(auction_id)
        try:
            receipt = await asyncio.wait_for(
                self.source.submit_bid(auction, amount, bidder), self.timeout
            )
        except BidRejected as exc:
            log.info("Bid of $%.2f on %s refused: %s", amount, auction.name, exc.reason)
            return Rejected(ErrorKind.BELOW_MINIMUM, exc.reason)
        except (NetworkFailure, asyncio.TimeoutError) as exc:
            log.warning("Bid on %s failed: %s", auction.name, str(exc) or "timed out")
            return Rejected(
                ErrorKind.NETWORK_FAILURE, "Network error while placing bid"
            )
        except Exception:
            log.exception("Unexpected error placing bid on %s", auction.name)
            return Rejected(
                ErrorKind.NETWORK_FAILURE, "Unexpected error while placing bid"
            )
        finally:
            self._in_flight.discard(auction_id)

        self.engine.clear_flag(auction_id)
        now = self.clock()
        until = now + self.celebration
        self._celebrating = {
            k: v for k, v in self._celebrating.items() if v > now
        }
        self._celebrating[auction_id] = until
        self.hub.publish(
            BidAccepted(
                auction_id=auction_id,
                amount=amount,
                bidder=bidder,
                bid_id=receipt.bid_id,
                timestamp=receipt.timestamp,
                celebrate_until=until,
            )
        )
        if self.refresh is not None:
            await self.refresh()
        # whatever snapshot is current now, not the one validated against
        return Accepted(receipt=receipt, auction=self.store.auction(auction_id))
