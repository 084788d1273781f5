from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from gavel.core import Auction
from gavel.leaderboard import DEFAULT_TOP_N, LeaderboardEntry, rank
from gavel.state import SessionStore
from gavel.timewindow import DEFAULT_WINDOW, TimeWindow, evaluate


@dataclass(frozen=True)
class AuctionView:
    auction: Auction
    window: TimeWindow
    leaderboard: list[LeaderboardEntry]
    outbid: bool
    leading: bool


def build_view(
    store: SessionStore,
    auction_id: str,
    now: datetime,
    *,
    full_window: timedelta = DEFAULT_WINDOW,
    top_n: int = DEFAULT_TOP_N,
) -> Optional[AuctionView]:
    """What a screen shows for one auction, or None if it isn't in the snapshot."""
    auction = store.auction(auction_id)
    if auction is None:
        return None
    return AuctionView(
        auction=auction,
        window=evaluate(auction.end_time, now, full_window),
        leaderboard=rank(auction.bid_history, top_n),
        outbid=store.is_outbid(auction_id),
        leading=bool(store.identity) and auction.leader == store.identity,
    )
