import os
from dataclasses import dataclass
from typing import Optional

import dotenv

from stopwatch_app.tools.time_tools.stopwatch import DEFAULT_TICK_INTERVAL


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    database_url: Optional[str] = None
    connect_retries: int = 3
    retry_delay: float = 1.0
    call_timeout: float = 5.0
    cooldown: float = 5.0
    tick_interval: float = DEFAULT_TICK_INTERVAL
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> "Settings":
        """Build settings from the environment (and ``.env`` when present)."""
        if load_dotenv:
            dotenv.load_dotenv()
        defaults = cls()
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            connect_retries=_env_int("STORE_CONNECT_RETRIES", defaults.connect_retries),
            retry_delay=_env_float("STORE_RETRY_DELAY", defaults.retry_delay),
            call_timeout=_env_float("STORE_CALL_TIMEOUT", defaults.call_timeout),
            cooldown=_env_float("STORE_COOLDOWN", defaults.cooldown),
            tick_interval=_env_float("STOPWATCH_TICK_INTERVAL", defaults.tick_interval),
            host=os.environ.get("HOST", defaults.host),
            port=_env_int("PORT", defaults.port),
        )
