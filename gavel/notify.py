# gavel/notify.py
from __future__ import annotations
import asyncio, logging
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Union

from gavel.reconcile import OutbidEvent

log = logging.getLogger("gavel.notify")


@dataclass(frozen=True)
class BidAccepted:
    auction_id: str
    amount: float
    bidder: str
    bid_id: str
    timestamp: datetime
    celebrate_until: datetime


Notification = Union[OutbidEvent, BidAccepted]


def describe(event: Notification) -> str:
    if isinstance(event, OutbidEvent):
        return (
            f"You've been outbid! {event.new_bidder} placed "
            f"${event.new_amount:,.2f} on {event.auction_name}"
        )
    return f"Bid placed: ${event.amount:,.2f} on {event.auction_id}"


class NotificationHub:
    """Fans out notifications to every registered listener queue."""

    def __init__(self, maxsize: int = 100):
        self._maxsize = maxsize
        self._qs: set[asyncio.Queue[Notification]] = set()

    def register(self) -> asyncio.Queue[Notification]:
        q: asyncio.Queue[Notification] = asyncio.Queue(maxsize=self._maxsize)
        self._qs.add(q)
        return q

    def unregister(self, q: asyncio.Queue[Notification]):
        self._qs.discard(q)

    def publish(self, event: Notification):
        log.info(describe(event))
        for q in list(self._qs):
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                # slow listener: drop its oldest entry
                q.get_nowait()
                q.put_nowait(event)

    async def listen(self) -> AsyncIterator[Notification]:
        q = self.register()
        try:
            while True:
                yield await q.get()
        finally:
            self.unregister(q)
