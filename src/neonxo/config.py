"""Runtime settings read from ``NEONXO_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .ai import DEFAULT_CACHE_CAPACITY


@dataclass(frozen=True)
class SpeedPreset:
    """Pacing of computer turns, in milliseconds."""

    ai_delay_ms: int
    thinking_threshold_ms: int


SPEED_PRESETS: Dict[str, SpeedPreset] = {
    "fast": SpeedPreset(ai_delay_ms=50, thinking_threshold_ms=100),
    "normal": SpeedPreset(ai_delay_ms=300, thinking_threshold_ms=50),
    "smooth": SpeedPreset(ai_delay_ms=600, thinking_threshold_ms=50),
}
DEFAULT_SPEED = "fast"


def get_speed(name: str) -> SpeedPreset:
    try:
        return SPEED_PRESETS[name]
    except KeyError as exc:
        raise ValueError(
            f"Unknown AI speed {name!r}. "
            f"Choose one of {', '.join(SPEED_PRESETS)}."
        ) from exc


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    leaderboard_path: Optional[str] = None
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    default_speed: str = DEFAULT_SPEED


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        env = os.environ
    speed = env.get("NEONXO_DEFAULT_SPEED", DEFAULT_SPEED)
    get_speed(speed)
    return Settings(
        host=env.get("NEONXO_HOST", "0.0.0.0"),
        port=_int_env(env, "NEONXO_PORT", 8000),
        log_level=env.get("NEONXO_LOG_LEVEL", "INFO").upper(),
        leaderboard_path=env.get("NEONXO_LEADERBOARD_PATH") or None,
        cache_capacity=_int_env(env, "NEONXO_CACHE_CAPACITY", DEFAULT_CACHE_CAPACITY),
        default_speed=speed,
    )
