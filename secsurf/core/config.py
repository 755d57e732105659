"""
core/config.py

Typed settings loader for the secsurf service.
Pydantic v2 + pydantic-settings.
Loads .env.local (or .env) automatically for local development.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger("secsurf.config")

# ---------------------------------------------------------------------------
# Load environment early (.env.local preferred), from the repo root.
# ---------------------------------------------------------------------------
ROOT_DIR = Path(__file__).resolve().parents[2]

_env_candidates = [
    ROOT_DIR / ".env.local",
    ROOT_DIR / ".env",
]

for _p in _env_candidates:
    if _p.exists():
        load_dotenv(_p, override=True)
        log.info("loaded environment from %s", _p)
        break

STAGES = ("dev", "staging", "prod")


# ---------------------------------------------------------------------------
# Settings Model
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    # ----- Service -----
    APP_NAME: str = "secsurf"
    APP_STAGE: str = os.getenv("APP_STAGE", "dev")  # dev|staging|prod
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ----- Transport -----
    # True when every request reaches us through a TLS-terminating proxy
    # (API Gateway, ALB, CDN). Selects the always-HSTS header policy.
    BEHIND_TLS_PROXY: bool = False

    # ----- Pydantic Settings Config -----
    model_config = SettingsConfigDict(
        env_file=None,  # already loaded manually above
        case_sensitive=False,
        extra="ignore",
    )

    # ----- Validators -----
    @field_validator("APP_STAGE", mode="before")
    @classmethod
    def normalise_stage(cls, v: str) -> str:
        stage = (v or "dev").strip().lower()
        if stage not in STAGES:
            raise ValueError(f"APP_STAGE must be one of {', '.join(STAGES)}")
        return stage


# ---------------------------------------------------------------------------
# Cached accessor
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor so Settings is constructed only once per process."""
    return Settings()
