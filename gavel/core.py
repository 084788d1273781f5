from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class Bid(_Wire):
    id: str
    amount: float
    timestamp: datetime
    bidder: str
    avatar: Optional[str] = None


class Auction(_Wire):
    id: str
    name: str
    description: str = ""
    category: str = ""
    image: Optional[str] = None
    end_time: datetime
    current_highest_bid: float
    bid_history: tuple[Bid, ...] = ()

    @property
    def leader(self) -> Optional[str]:
        """Bidder of the most recent entry in the history, if any."""
        return self.bid_history[-1].bidder if self.bid_history else None


Snapshot = dict[str, Auction]


def build_snapshot(auctions: Iterable[Auction]) -> Snapshot:
    return {a.id: a for a in auctions}


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    BELOW_MINIMUM = "BelowMinimum"
    SUBMISSION_IN_PROGRESS = "SubmissionInProgress"
    NETWORK_FAILURE = "NetworkFailure"
    UNAUTHENTICATED = "Unauthenticated"


@dataclass(frozen=True)
class Rejected:
    kind: ErrorKind
    reason: str


@dataclass(frozen=True)
class BidReceipt:
    bid_id: str
    timestamp: datetime


@dataclass(frozen=True)
class Accepted:
    receipt: BidReceipt
    auction: Optional[Auction]  # as seen after the post-submit refresh


class NetworkFailure(RuntimeError):
    """Raised when the auction source cannot be reached or answers garbage."""


class BidRejected(Exception):
    """Raised when the auction source refuses a bid (HTTP 400)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AuctionSource(ABC):
    """The remote side: supplies snapshots and takes bids."""

    @abstractmethod
    async def fetch_snapshot(self) -> list[Auction]: ...

    @abstractmethod
    async def submit_bid(
        self, auction: Auction, amount: float, bidder: str
    ) -> BidReceipt: ...
