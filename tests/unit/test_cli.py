"""CLI commands against an in-process auction house."""

import httpx
import pytest
from typer.testing import CliRunner

from conftest import NOW, auction, bid

from gavel import cli
from gavel.fetchers.http import HttpAuctionSource
from gavel.session import Session
from gavel.web.api import AuctionHouse, create_app

runner = CliRunner()


@pytest.fixture
def house(monkeypatch, tmp_path):
    monkeypatch.setenv("GAVEL_LOG_FILE", str(tmp_path / "gavel.log"))
    monkeypatch.setenv("GAVEL_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.delenv("GAVEL_IDENTITY", raising=False)
    house = AuctionHouse(
        [
            auction(
                "A1",
                bid("MusicLover42", 1000, 120),
                bid("VintageSeeker", 1250, 30),
                name="Vintage Guitar",
            )
        ],
        clock=lambda: NOW,
    )
    transport = httpx.ASGITransport(app=create_app(house))

    def make_session(settings):
        source = HttpAuctionSource("http://house.test", transport=transport)
        return Session(settings, source=source, clock=lambda: NOW)

    monkeypatch.setattr(cli, "make_session", make_session)
    return house


def test_board(house):
    result = runner.invoke(cli.app, ["board", "A1", "--identity", "VintageSeeker"])
    assert result.exit_code == 0, result.output
    assert "Vintage Guitar [LEADING]" in result.output
    assert "2d 0h 0m" in result.output
    assert "#1 VintageSeeker" in result.output
    assert "#2 MusicLover42" in result.output


def test_board_unknown_auction(house):
    result = runner.invoke(cli.app, ["board", "nope"])
    assert result.exit_code == 1


def test_bid_accepted(house):
    result = runner.invoke(cli.app, ["bid", "A1", "1300", "-i", "NewBidder"])
    assert result.exit_code == 0, result.output
    assert "Bid Placed Successfully! $1,300.00" in result.output
    assert house.find("A1", None).leader == "NewBidder"


def test_bid_below_minimum_not_sent(house):
    result = runner.invoke(cli.app, ["bid", "A1", "1200", "-i", "NewBidder"])
    assert result.exit_code == 1
    assert "Bid Failed" in result.output
    assert house.find("A1", None).current_highest_bid == 1250


def test_bid_needs_identity(house):
    result = runner.invoke(cli.app, ["bid", "A1", "1300"])
    assert result.exit_code == 1
    assert "log in" in result.output
