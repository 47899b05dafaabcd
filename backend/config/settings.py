"""Centralized settings module: single source of truth for all config.

Everything is read from env vars (or backend/.env). Nothing here is persisted;
the service keeps all session state in process memory.
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # ── Environment ──────────────────────────────────────────────
    ENV: Literal["dev", "staging", "prod"] = Field(default="dev")

    # ── Listener ─────────────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    # Origin used in joinUrl. Empty → derived from the request / proxy headers
    PUBLIC_BASE_URL: str = Field(default="")

    # ── Pairing sessions ─────────────────────────────────────────
    SESSION_TTL_S: int = Field(default=900)  # 15 min
    CODE_DIGITS: int = Field(default=4)
    CODE_MAX_ATTEMPTS: int = Field(default=0)  # 0 → 10x the code space
    SWEEP_INTERVAL_S: int = Field(default=60)

    # ── Fallback transfer ────────────────────────────────────────
    FALLBACK_MAX_BYTES: int = Field(default=5 * 1024 * 1024)  # 5 MiB

    # ── Relay ────────────────────────────────────────────────────
    RELAY_OUTBOX_SIZE: int = Field(default=64)  # per-connection queued frames

    # ── Observability ────────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO")
    LOG_REDACTION_ENABLED: bool = Field(default=True)

    model_config = {
        "env_file": str(_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
