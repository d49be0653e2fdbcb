"""Environment-driven player configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from auto_dj.playback.planner import DEFAULT_ATTACK_SEC, DEFAULT_CROSSFADE_SEC
from auto_dj.playback.poller import DEFAULT_POLL_INTERVAL_SEC
from auto_dj.playback.transport import DEFAULT_SCHEDULE_MARGIN_SEC


@dataclass(frozen=True, slots=True)
class PlayerConfig:
    crossfade_sec: float = DEFAULT_CROSSFADE_SEC
    attack_sec: float = DEFAULT_ATTACK_SEC
    schedule_margin_sec: float = DEFAULT_SCHEDULE_MARGIN_SEC
    poll_interval_sec: float = DEFAULT_POLL_INTERVAL_SEC
    sample_rate: int = 48_000
    load_workers: int = 2
    log_level: str = "INFO"
    log_format: str = "text"

    @staticmethod
    def from_env() -> PlayerConfig:
        log_format = os.getenv("AUTO_DJ_LOG_FORMAT", "text").strip().lower()
        return PlayerConfig(
            crossfade_sec=max(_env_float("AUTO_DJ_CROSSFADE_SEC", DEFAULT_CROSSFADE_SEC), 0.0),
            attack_sec=max(_env_float("AUTO_DJ_ATTACK_SEC", DEFAULT_ATTACK_SEC), 0.0),
            schedule_margin_sec=max(_env_float("AUTO_DJ_SCHEDULE_MARGIN_SEC", DEFAULT_SCHEDULE_MARGIN_SEC), 0.0),
            poll_interval_sec=max(_env_float("AUTO_DJ_POLL_INTERVAL_SEC", DEFAULT_POLL_INTERVAL_SEC), 0.01),
            sample_rate=max(_env_int("AUTO_DJ_SAMPLE_RATE", 48_000), 8_000),
            load_workers=max(_env_int("AUTO_DJ_LOAD_WORKERS", 2), 1),
            log_level=os.getenv("AUTO_DJ_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            log_format=log_format if log_format in {"text", "json"} else "text",
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default
