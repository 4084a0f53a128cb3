"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.missing_backend_keys()   # [] when the backend can run
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── Client ──────────────────────────────────────────────────────────────
    base_url: str = field(
        default_factory=lambda: os.environ.get("POSTSTUDIO_BASE_URL", "http://localhost:8080")
    )
    #: Seconds to wait for a terminal event; 0 disables the timeout.
    stream_timeout: float = field(
        default_factory=lambda: _env_float("STREAM_TIMEOUT_SECONDS", 0.0)
    )
    copy_ack_seconds: float = field(
        default_factory=lambda: _env_float("COPY_ACK_SECONDS", 1.5)
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: _env_int("PORT", 8080)
    )

    # ── X (item source) ─────────────────────────────────────────────────────
    x_bearer_token: str = field(
        default_factory=lambda: os.environ.get("X_BEARER_TOKEN", "")
    )
    x_api_base_url: str = field(
        default_factory=lambda: os.environ.get("X_API_BASE_URL", "https://api.x.com/2")
    )
    max_items: int = field(
        default_factory=lambda: _env_int("MAX_ITEMS", 50)
    )

    # ── Summarisation ───────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )
    summary_model: str = field(
        default_factory=lambda: os.environ.get("SUMMARY_MODEL", "claude-haiku-4-5")
    )

    # ── Moderation ──────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "")
    )
    openai_api_base_url: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_BASE_URL", "https://api.openai.com/v1")
    )
    moderation_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_MODERATION_MODEL", "omni-moderation-latest")
    )

    # ── Cache ───────────────────────────────────────────────────────────────
    cache_ttl_seconds: int = field(
        default_factory=lambda: _env_int("CACHE_TTL_SECONDS", 600)
    )

    def missing_backend_keys(self) -> list[str]:
        """Return the names of required backend settings that are unset.

        Only the item source is mandatory: summarisation falls back to the
        keyword heuristic and moderation is skipped when their keys are absent.
        """
        missing = []
        if not self.x_bearer_token:
            missing.append("X_BEARER_TOKEN")
        return missing
