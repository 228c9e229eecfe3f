# memer/utils/config.py

import os
from dataclasses import dataclass, field
from typing import Dict, List


def _split_csv(name: str, default: str = "") -> List[str]:
    raw = os.getenv(name, default)
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return parts


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_cooldowns(name: str) -> Dict[str, int]:
    """Parse ``work=60000,beg=1000`` into {action: ms}."""
    overrides = {}
    for part in _split_csv(name):
        action, _, value = part.partition("=")
        if action.strip() and value.strip():
            overrides[action.strip()] = int(value)
    return overrides


@dataclass
class Config:
    # HTTP
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", "8080") or "8080")
    # Upstream auth proxy puts the authenticated username in this header
    identity_header: str = os.getenv("IDENTITY_HEADER", "X-Authenticated-User")
    admin_token: str = os.getenv("ADMIN_TOKEN", "")

    # Storage: "memory" | "postgres"
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory")
    seed_catalog: bool = _env_bool("SEED_CATALOG", True)

    # Database (Postgres)
    db_host: str = os.getenv("DB_HOST", "postgres")
    db_port: int = int(os.getenv("DB_PORT", "5432"))
    db_name: str = os.getenv("DB_NAME", "meme_economy")
    db_user: str = os.getenv("DB_USER", "memer")
    db_password: str = os.getenv("DB_PASSWORD", "")
    db_pool_min: int = int(os.getenv("DB_POOL_MIN", "5") or "5")
    db_pool_max: int = int(os.getenv("DB_POOL_MAX", "20") or "20")

    # Gambling
    casino_min_bet: int = int(os.getenv("CASINO_MIN_BET", "10") or "10")
    casino_max_bet: int = int(os.getenv("CASINO_MAX_BET", "10000") or "10000")
    highlow_min_bet: int = int(os.getenv("HIGHLOW_MIN_BET", "10") or "10")
    highlow_max_bet: int = int(os.getenv("HIGHLOW_MAX_BET", "100000") or "100000")

    # Cooldowns, e.g. COOLDOWNS="work=60000,beg=1000" (milliseconds)
    cooldown_overrides: Dict[str, int] = field(default_factory=lambda: _env_cooldowns("COOLDOWNS"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
