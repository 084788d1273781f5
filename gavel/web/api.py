# gavel/web/api.py
from __future__ import annotations
import json, logging, os, uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field, TypeAdapter
from starlette.middleware.cors import CORSMiddleware

from gavel.core import Auction, Bid
from gavel.timewindow import as_utc
from gavel.validator import validate

log = logging.getLogger("gavel.web")


class BidIn(BaseModel):
    auction_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("auctionName", "productName")
    )
    auction_id: Optional[str] = Field(None, validation_alias="auctionId")
    amount: float
    bidder: str = Field(validation_alias=AliasChoices("bidderIdentity", "bidder"))


class BidOut(BaseModel):
    accepted: bool = True
    bidId: str
    timestamp: str
    auctionName: str
    amount: float
    bidder: str


class BidRefused(ValueError):
    """Bad input, or an amount not above the current highest."""


class AuctionHouse:
    """In-memory authoritative state: the highest bid only ever goes up."""

    def __init__(
        self,
        auctions: Iterable[Auction] = (),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._auctions: dict[str, Auction] = {a.id: a for a in auctions}
        self.clock = clock

    def auctions(self) -> List[Auction]:
        return list(self._auctions.values())

    def find(self, auction_id: Optional[str], name: Optional[str]) -> Optional[Auction]:
        if auction_id:
            return self._auctions.get(auction_id)
        return next((a for a in self._auctions.values() if a.name == name), None)

    def place_bid(
        self,
        auction_id: Optional[str],
        name: Optional[str],
        amount: float,
        bidder: str,
    ) -> Bid:
        if not (auction_id or name) or not bidder.strip():
            raise BidRefused("Invalid product name, bid amount, or bidder")
        auction = self.find(auction_id, name)
        if auction is None:
            raise BidRefused(f"No such auction: {auction_id or name}")
        now = self.clock()
        if now >= as_utc(auction.end_time):
            raise BidRefused(f"Auction for {auction.name} has ended")
        rejected = validate(amount, auction.current_highest_bid)
        if rejected is not None:
            raise BidRefused(rejected.reason)
        bid = Bid(
            id=f"bid_{uuid.uuid4().hex[:12]}",
            amount=amount,
            timestamp=now,
            bidder=bidder,
        )
        self._auctions[auction.id] = auction.model_copy(
            update={
                "current_highest_bid": amount,
                "bid_history": auction.bid_history + (bid,),
            }
        )
        log.info("%s bid $%.2f on %s", bidder, amount, auction.name)
        return bid


def load_catalog(path: Path) -> AuctionHouse:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return AuctionHouse(TypeAdapter(List[Auction]).validate_python(raw))


def create_app(house: AuctionHouse) -> FastAPI:
    api = FastAPI(
        title="gavel auction house",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    api.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    api.state.house = house

    @api.exception_handler(RequestValidationError)
    async def _bad_input(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": "Invalid product name, bid amount, or bidder"}, status_code=400
        )

    @api.exception_handler(Exception)
    async def _internal(request: Request, exc: Exception):
        log.exception("Unhandled error on %s", request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    @api.get("/api/products")
    async def products():
        return [a.model_dump(mode="json", by_alias=True) for a in house.auctions()]

    @api.post("/api/bid", response_model=BidOut)
    async def bid(payload: BidIn):
        try:
            placed = house.place_bid(
                payload.auction_id, payload.auction_name, payload.amount, payload.bidder
            )
        except BidRefused as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        auction = house.find(payload.auction_id, payload.auction_name)
        return BidOut(
            bidId=placed.id,
            timestamp=placed.timestamp.isoformat(),
            auctionName=auction.name,
            amount=placed.amount,
            bidder=placed.bidder,
        )

    return api
