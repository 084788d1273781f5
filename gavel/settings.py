from datetime import timedelta
from pathlib import Path
from typing import Optional
from pydantic import BaseModel
import tomllib
import os


class PollingCfg(BaseModel):
    refresh_seconds: float = 3
    tick_seconds: float = 1
    fetch_timeout_seconds: float = 10


class BiddingCfg(BaseModel):
    leaderboard_size: int = 5
    celebration_seconds: float = 3
    submit_timeout_seconds: float = 10
    full_window_hours: float = 24


class NetworkCfg(BaseModel):
    base_url: str = "http://localhost:3000"
    user_agent: str = "gavel/0.1"


class Settings(BaseModel):
    identity: Optional[str] = None
    polling: PollingCfg = PollingCfg()
    bidding: BiddingCfg = BiddingCfg()
    network: NetworkCfg = NetworkCfg()

    # ---- helpers -----------------------------------------------------
    @property
    def full_window(self) -> timedelta:
        return timedelta(hours=self.bidding.full_window_hours)

    def headers(self) -> dict[str, str]:
        return {"User-Agent": self.network.user_agent, "Accept": "application/json"}


def load_settings() -> Settings:
    cfg_path = Path(os.getenv("GAVEL_CONFIG", "gavel.toml"))
    raw = tomllib.loads(cfg_path.read_text()) if cfg_path.exists() else {}
    if identity := os.getenv("GAVEL_IDENTITY"):
        raw["identity"] = identity
    if base_url := os.getenv("GAVEL_BASE_URL"):
        raw.setdefault("network", {})["base_url"] = base_url
    return Settings.model_validate(raw)
