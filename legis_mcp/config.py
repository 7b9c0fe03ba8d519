"""
Server configuration
Settings are read from environment variables (a .env file is honoured by the entry point)
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional


DEFAULT_BASE_URL = "https://api.congress.gov/v3"


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class RateLimitConfig:
    """Sliding window limits for the upstream API."""
    max_requests: int = 500  # Congress.gov published limit
    window_seconds: float = 3600.0


@dataclass(frozen=True)
class Settings:
    """Complete server configuration."""
    api_keys: List[str] = field(default_factory=list)
    base_url: str = DEFAULT_BASE_URL
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    request_timeout: float = 30.0
    key_cooldown_seconds: float = 60.0
    member_batch_size: int = 5
    member_batch_delay: float = 0.1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ if env is None else env

        keys = env.get("CONGRESS_GOV_API_KEY", "")
        rate_limit = RateLimitConfig(
            max_requests=_get_int(env, "RATE_LIMIT_MAX_REQUESTS", 500),
            window_seconds=_get_float(env, "RATE_LIMIT_WINDOW_SECONDS", 3600.0),
        )
        if rate_limit.max_requests < 1 or rate_limit.window_seconds <= 0:
            raise ValueError("Rate limit settings must be positive")

        batch_size = _get_int(env, "MEMBER_BATCH_SIZE", 5)
        if batch_size < 1:
            raise ValueError("MEMBER_BATCH_SIZE must be at least 1")

        return cls(
            api_keys=[k.strip() for k in keys.split(",") if k.strip()],
            base_url=env.get("CONGRESS_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            rate_limit=rate_limit,
            request_timeout=_get_float(env, "REQUEST_TIMEOUT", 30.0),
            key_cooldown_seconds=_get_float(env, "KEY_COOLDOWN_SECONDS", 60.0),
            member_batch_size=batch_size,
            member_batch_delay=_get_float(env, "MEMBER_BATCH_DELAY", 0.1),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
