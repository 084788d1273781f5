from __future__ import annotations

import threading
from datetime import datetime
from typing import Optional

from gavel.core import Auction, Snapshot
from gavel.timewindow import TimeWindow


class SessionStore:
    """Everything one client session knows about the auctions it watches."""

    def __init__(self, identity: Optional[str] = None):
        self.identity = identity
        self.snapshot: Snapshot = {}
        self.flagged: frozenset[str] = frozenset()
        self.windows: dict[str, TimeWindow] = {}
        self.refreshed_at: Optional[datetime] = None
        # guards the (snapshot, flagged) pair
        self.lock = threading.Lock()

    def auction(self, auction_id: str) -> Optional[Auction]:
        return self.snapshot.get(auction_id)

    def is_outbid(self, auction_id: str) -> bool:
        return auction_id in self.flagged
