"""
JSON auction API client.

  • GET  {base}/api/products  → list of auctions, full state every call
  • POST {base}/api/bid       → {auctionName, auctionId, amount, bidderIdentity}
        200 {accepted, bidId, timestamp}
        400 {error}   refused, reason passed on verbatim
        5xx           server fault
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from gavel.core import Auction, AuctionSource, BidReceipt, BidRejected, NetworkFailure

log = logging.getLogger("gavel.fetchers.http")

_AUCTIONS = TypeAdapter(list[Auction])


class HttpAuctionSource(AuctionSource):
    """Talks to an auction house over its JSON API."""

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers = headers
        self._timeout = timeout
        self._transport = transport

    async def fetch_snapshot(self) -> list[Auction]:
        r = await self._request("GET", "/api/products")
        if r.status_code != 200:
            raise NetworkFailure(f"GET /api/products answered {r.status_code}")
        try:
            return _AUCTIONS.validate_json(r.content)
        except ValidationError as exc:
            raise NetworkFailure(f"Malformed snapshot: {exc}") from exc

    async def submit_bid(
        self, auction: Auction, amount: float, bidder: str
    ) -> BidReceipt:
        r = await self._request(
            "POST",
            "/api/bid",
            json={
                "auctionName": auction.name,
                "auctionId": auction.id,
                "amount": amount,
                "bidderIdentity": bidder,
            },
        )
        if r.status_code == 400:
            raise BidRejected(self._error_of(r) or "Bid rejected")
        if r.status_code != 200:
            raise NetworkFailure(
                f"POST /api/bid answered {r.status_code}: {self._error_of(r)}"
            )
        try:
            body = r.json()
            stamp = body.get("timestamp")
            return BidReceipt(
                bid_id=str(body["bidId"]),
                timestamp=(
                    datetime.fromisoformat(stamp) if stamp else datetime.now(timezone.utc)
                ),
            )
        except (ValueError, KeyError, AttributeError, TypeError) as exc:
            raise NetworkFailure(f"Malformed bid response: {exc}") from exc

    # ---------------- HTTP ---------------- #

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                follow_redirects=True,
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            log.debug("%s %s failed: %s", method, path, exc)
            raise NetworkFailure(f"{method} {path}: {exc}") from exc

    @staticmethod
    def _error_of(r: httpx.Response) -> Optional[str]:
        try:
            body = r.json()
        except ValueError:
            return r.text or None
        error = body.get("error") if isinstance(body, dict) else None
        return None if error is None else str(error)
