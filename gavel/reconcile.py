"""
Snapshot diffing.

An auction moves TRACKED → FLAGGED_OUTBID when the local identity led it in
the previous snapshot and someone else leads it, at a higher amount, in the
new one. Only a successful local bid moves it back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AbstractSet, Callable, Iterable, Optional

from gavel.core import Auction, Snapshot, build_snapshot
from gavel.state import SessionStore

log = logging.getLogger("gavel.reconcile")


@dataclass(frozen=True)
class OutbidEvent:
    auction_id: str
    auction_name: str
    previous_amount: float
    new_amount: float
    new_bidder: Optional[str]
    detected_at: datetime


def _outbid(old: Auction, new: Auction, identity: str) -> bool:
    return (
        old.leader == identity
        and new.current_highest_bid > old.current_highest_bid
        and new.leader is not None
        and new.leader != identity
    )


def reconcile(
    previous: Snapshot,
    new: Snapshot,
    identity: Optional[str],
    flagged: AbstractSet[str] = frozenset(),
    now: Optional[datetime] = None,
) -> tuple[frozenset[str], list[OutbidEvent]]:
    flags = set(flagged)
    events: list[OutbidEvent] = []
    if not identity:
        return frozenset(flags), events

    now = now or datetime.now(timezone.utc)
    for auction_id, auction in new.items():
        old = previous.get(auction_id)
        if old is None or not _outbid(old, auction, identity):
            continue
        flags.add(auction_id)
        events.append(
            OutbidEvent(
                auction_id=auction_id,
                auction_name=auction.name,
                previous_amount=old.current_highest_bid,
                new_amount=auction.current_highest_bid,
                new_bidder=auction.leader,
                detected_at=now,
            )
        )
    return frozenset(flags), events


class ReconciliationEngine:
    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.clock = clock

    def apply(self, auctions: Iterable[Auction]) -> list[OutbidEvent]:
        """Diff ``auctions`` against the stored snapshot, then replace it."""
        new = build_snapshot(auctions)
        now = self.clock()
        with self.store.lock:
            previous = self.store.snapshot
            for auction_id in new.keys() - previous.keys():
                log.debug("Tracking %s", auction_id)
            flags, events = reconcile(
                previous, new, self.store.identity, self.store.flagged, now
            )
            self.store.snapshot = new
            self.store.flagged = flags
            self.store.refreshed_at = now
        return events

    def clear_flag(self, auction_id: str) -> bool:
        with self.store.lock:
            if auction_id not in self.store.flagged:
                return False
            self.store.flagged = self.store.flagged - {auction_id}
        log.debug("Cleared outbid flag on %s", auction_id)
        return True
