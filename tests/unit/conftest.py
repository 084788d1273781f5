"""Shared fixtures: auction builders and an in-memory auction source."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from gavel.core import Auction, AuctionSource, Bid, BidReceipt, BidRejected, NetworkFailure
from gavel.session import Session
from gavel.settings import Settings

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def bid(bidder: str, amount: float, minutes_ago: float = 0, bid_id: str = "") -> Bid:
    return Bid(
        id=bid_id or f"{bidder}-{amount}",
        amount=amount,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        bidder=bidder,
    )


def auction(
    auction_id: str = "A1",
    *bids: Bid,
    name: Optional[str] = None,
    highest: Optional[float] = None,
    ends_in: timedelta = timedelta(days=2),
) -> Auction:
    return Auction(
        id=auction_id,
        name=name or f"Lot {auction_id}",
        end_time=NOW + ends_in,
        current_highest_bid=highest if highest is not None else max(
            (b.amount for b in bids), default=0
        ),
        bid_history=bids,
    )


class FakeSource(AuctionSource):
    """Auction source whose answers the test controls."""

    def __init__(self, auctions: list[Auction]):
        self.auctions = list(auctions)
        self.fetches = 0
        self.submitted: list[tuple[str, float, str]] = []
        self.gate: Optional[asyncio.Event] = None
        self.fail_fetch = False
        self.fail_submit = False
        self.reject: Optional[str] = None

    async def fetch_snapshot(self) -> list[Auction]:
        self.fetches += 1
        await asyncio.sleep(0)
        if self.fail_fetch:
            raise NetworkFailure("connection refused")
        return list(self.auctions)

    async def submit_bid(self, auction: Auction, amount: float, bidder: str) -> BidReceipt:
        self.submitted.append((auction.id, amount, bidder))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_submit:
            raise NetworkFailure("connection reset")
        if self.reject:
            raise BidRejected(self.reject)
        placed = Bid(id=f"bid_{len(self.submitted)}", amount=amount, timestamp=NOW, bidder=bidder)
        self.auctions = [
            a.model_copy(
                update={"current_highest_bid": amount, "bid_history": a.bid_history + (placed,)}
            )
            if a.id == auction.id
            else a
            for a in self.auctions
        ]
        return BidReceipt(bid_id=placed.id, timestamp=NOW)


@pytest.fixture
def clock():
    """Mutable clock: set ``clock.now`` to move time."""

    class _Clock:
        now = NOW

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def source():
    return FakeSource(
        [
            auction(
                "A1",
                bid("MusicLover42", 1000, 120),
                bid("GuitarCollector", 1100, 60),
                bid("VintageSeeker", 1250, 30),
                name="Vintage Guitar",
            ),
            auction(
                "A2",
                bid("ArtEnthusiast", 500, 180),
                bid("PrintCollector", 750, 45),
                name="Rare Art Print",
                ends_in=timedelta(minutes=5),
            ),
        ]
    )


@pytest.fixture
def session(source, clock):
    return Session(Settings(identity="VintageSeeker"), source=source, clock=clock)
