"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

import warnings
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

INSECURE_SECRET = "change-me-in-production"  # nosec B105


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Database
    database_url: str = "sqlite+aiosqlite:///./fabricfair.db"

    # App
    secret_key: str = INSECURE_SECRET
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: list[str] = ["http://localhost:8000"]
    default_locale: Literal["pl", "en"] = "pl"

    # Admin bootstrap (used by `fabricfair init-admin`)
    admin_email: str = "admin@fabricfair.com"
    admin_password: str | None = None

    # Login / captcha gate
    rate_limit_max_attempts: int = 5
    rate_limit_block_seconds: float = 30.0
    rate_limit_idle_seconds: float = 300.0
    rate_limit_sweep_seconds: float = 60.0
    challenge_ttl_seconds: float = 60.0
    challenge_verified_window_seconds: float = 30.0
    challenge_used_grace_seconds: float = 5.0
    challenge_sweep_seconds: float = 30.0
    session_max_age_seconds: int = 60 * 60 * 24 * 7
    require_challenge_on_submit: bool = False
    # Peers whose X-Forwarded-For / X-Real-IP headers name the client. "*" trusts any
    # peer and only fits a deployment reachable solely through the proxy; list the
    # proxy addresses otherwise, or set [] to key on the socket peer.
    trusted_proxies: list[str] = ["*"]

    # PDF export; unset means a system DejaVu font if present, else Helvetica
    pdf_font_path: str | None = None
    pdf_font_bold_path: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    settings = Settings()
    if settings.secret_key == INSECURE_SECRET:
        warnings.warn(
            "SECRET_KEY is using the insecure default. "
            "Set SECRET_KEY environment variable for production.",
            UserWarning,
            stacklevel=2,
        )
    return settings
