import asyncio
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Annotated, Optional
import os
import typer
from gavel.core import ErrorKind, Rejected
from gavel.notify import describe
from gavel.session import Session
from gavel.settings import Settings, load_settings

if os.getenv("DEBUG_CLI", "0") == "1":
    import debugpy

    debugpy.listen(("0.0.0.0", 5679))
    if os.getenv("DEBUGPY_WAIT", "0") == "1":
        debugpy.wait_for_client()


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s -- %(message)s"


def setup_logging():
    level = logging.DEBUG if os.getenv("GAVEL_DEBUG", "0") == "1" else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root = logging.getLogger()
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return
    file_handler = RotatingFileHandler(
        os.getenv("GAVEL_LOG_FILE", "./gavel.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(file_handler)


app = typer.Typer(help="gavel CLI")

IdentityOpt = Annotated[
    Optional[str],
    typer.Option("--identity", "-i", help="Bidder name to watch/bid as."),
]


@app.callback()
def main():
    setup_logging()


def _settings(identity: Optional[str]) -> Settings:
    settings = load_settings()
    if identity:
        settings = settings.model_copy(update={"identity": identity})
    return settings


def make_session(settings: Settings) -> Session:
    return Session(settings)


async def _watch(session: Session):
    session.poller.start()
    typer.echo("gavel watching – Ctrl+C to quit")
    try:
        async for event in session.hub.listen():
            typer.echo(describe(event))
    finally:
        session.poller.stop()


@app.command()
def watch(identity: IdentityOpt = None):
    """Poll the auction house and report outbids."""
    session = make_session(_settings(identity))
    try:
        asyncio.run(_watch(session))
    except KeyboardInterrupt:
        pass


def _print_view(session: Session, auction_id: str):
    view = session.view(auction_id)
    if view is None:
        typer.echo(f"No auction {auction_id!r}", err=True)
        raise typer.Exit(1)
    a = view.auction
    flag = " [OUTBID]" if view.outbid else (" [LEADING]" if view.leading else "")
    typer.echo(f"{a.name}{flag}")
    typer.echo(
        f"  ${a.current_highest_bid:,.2f} | {view.window.remaining_text} "
        f"({view.window.urgency.value}, {view.window.percent_remaining:.0f}%)"
    )
    if not view.leaderboard:
        typer.echo("  No bids yet - be the first!")
    for entry in view.leaderboard:
        typer.echo(
            f"  #{entry.rank} {entry.bidder[:20]:20} ${entry.amount:,.2f}"
            f"  {entry.timestamp:%H:%M}"
        )


@app.command()
def board(
    auction_id: Annotated[str, typer.Argument(help="Auction id.")],
    identity: IdentityOpt = None,
):
    """Show one auction: countdown and top bidders."""
    session = make_session(_settings(identity))
    if asyncio.run(session.poller.refresh()) is None:
        typer.echo("Failed to load auction items", err=True)
        raise typer.Exit(1)
    _print_view(session, auction_id)


@app.command()
def bid(
    auction_id: Annotated[str, typer.Argument(help="Auction id.")],
    amount: Annotated[float, typer.Argument(help="Bid amount.")],
    identity: IdentityOpt = None,
):
    """Place a bid."""
    session = make_session(_settings(identity))

    async def _run():
        if await session.poller.refresh() is None:
            return Rejected(ErrorKind.NETWORK_FAILURE, "Failed to load auction items")
        return await session.bid(auction_id, amount)

    result = asyncio.run(_run())
    if isinstance(result, Rejected):
        typer.echo(f"Bid Failed: {result.reason}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Bid Placed Successfully! ${amount:,.2f} ({result.receipt.bid_id})")
    _print_view(session, auction_id)


@app.command()
def serve(
    catalog: Annotated[Path, typer.Option("--catalog", "-c", help="JSON list of auctions.")],
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port.")] = 3000,
):
    """Run an in-memory auction house over a catalog file."""
    import uvicorn
    from gavel.web.api import create_app, load_catalog

    uvicorn.run(create_app(load_catalog(catalog)), host=host, port=port)


if __name__ == "__main__":
    app()
