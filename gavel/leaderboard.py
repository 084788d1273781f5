from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from gavel.core import Bid

DEFAULT_TOP_N = 5


@dataclass(frozen=True)
class LeaderboardEntry:
    bidder: str
    amount: float
    timestamp: datetime
    rank: int
    avatar: Optional[str] = None


def _beats(bid: Bid, best: Bid) -> bool:
    # first to reach a level keeps it
    return bid.amount > best.amount or (
        bid.amount == best.amount and bid.timestamp < best.timestamp
    )


def best_bids(history: Iterable[Bid]) -> list[Bid]:
    """One bid per bidder: their highest, earliest on ties."""
    best: dict[str, Bid] = {}
    for bid in history:
        current = best.get(bid.bidder)
        if current is None or _beats(bid, current):
            best[bid.bidder] = bid
    return list(best.values())


def rank(history: Iterable[Bid], top_n: int = DEFAULT_TOP_N) -> list[LeaderboardEntry]:
    if top_n <= 0:
        return []
    ordered = sorted(
        best_bids(history), key=lambda b: (-b.amount, b.timestamp, b.bidder)
    )
    return [
        LeaderboardEntry(
            bidder=b.bidder,
            amount=b.amount,
            timestamp=b.timestamp,
            rank=pos,
            avatar=b.avatar,
        )
        for pos, b in enumerate(ordered[:top_n], start=1)
    ]
