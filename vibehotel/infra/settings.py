from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_PORT = 9091
DEFAULT_MAP_SIZE = 12
DEFAULT_STARTING_CREDITS = 100
# Larger text frames are dropped as malformed.
DEFAULT_MAX_MESSAGE_BYTES = 65_536
# Frames queued for one client before it is treated as too slow and closed.
DEFAULT_MAX_OUTBOX = 1024


def load_dotenv_if_present(path: Path | None = None) -> bool:
    """Load `.env` into the process environment without overriding real env vars."""

    env_path = path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(dotenv_path=env_path, override=False)


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def get_host() -> str:
    return os.environ.get("HOST", "0.0.0.0")


def get_port() -> int:
    return _int_env("PORT", DEFAULT_PORT, minimum=1)


def get_log_level() -> str:
    return os.environ.get("VIBEHOTEL_LOG_LEVEL", "INFO").strip().upper() or "INFO"


@dataclass(frozen=True, slots=True)
class RoomSettings:
    map_width: int = DEFAULT_MAP_SIZE
    map_height: int = DEFAULT_MAP_SIZE
    starting_credits: int = DEFAULT_STARTING_CREDITS
    max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES
    max_outbox: int = DEFAULT_MAX_OUTBOX


def get_room_settings() -> RoomSettings:
    return RoomSettings(
        map_width=_int_env("VIBEHOTEL_MAP_WIDTH", DEFAULT_MAP_SIZE, minimum=1),
        map_height=_int_env("VIBEHOTEL_MAP_HEIGHT", DEFAULT_MAP_SIZE, minimum=1),
        starting_credits=_int_env("VIBEHOTEL_STARTING_CREDITS", DEFAULT_STARTING_CREDITS),
        max_message_bytes=_int_env("VIBEHOTEL_MAX_MESSAGE_BYTES", DEFAULT_MAX_MESSAGE_BYTES, minimum=1),
        max_outbox=_int_env("VIBEHOTEL_MAX_OUTBOX", DEFAULT_MAX_OUTBOX, minimum=1),
    )
