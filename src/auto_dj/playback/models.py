"""Core playback models shared by the catalog, planner and transport."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import uuid4


class TransportState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True, slots=True)
class Track:
    track_id: str
    name: str
    duration_sec: float
    buffer: Any = None

    def __post_init__(self) -> None:
        if self.duration_sec < 0.0:
            raise ValueError(f"duration_sec must be >= 0, got {self.duration_sec}")

    @staticmethod
    def from_decoded(name: str, decoded: Any, track_id: str | None = None) -> Track:
        return Track(
            track_id=track_id or str(uuid4()),
            name=name,
            duration_sec=float(decoded.duration_sec),
            buffer=decoded,
        )


@dataclass(frozen=True, slots=True)
class LocatedTrack:
    index: int
    track_id: str
    intra_offset: float


@dataclass(frozen=True, slots=True)
class PlaybackSegment:
    """One track's playback window, in seconds relative to the run start."""

    track_index: int
    track_id: str
    buffer: Any
    intra_start: float
    play_length: float
    fade_in_length: float
    fade_out_length: float
    start_offset: float

    @property
    def end_offset(self) -> float:
        return self.start_offset + self.play_length

    def gain_at(self, local_time: float) -> float:
        """Envelope gain at ``local_time`` seconds after the segment starts.

        Attack and release are evaluated independently and the lower one wins,
        so a segment shorter than both ramps never exceeds either of them.
        """
        if local_time < 0.0 or local_time >= self.play_length:
            return 0.0
        attack = 1.0
        if self.fade_in_length > 0.0:
            attack = min(local_time / self.fade_in_length, 1.0)
        release = 1.0
        if self.fade_out_length > 0.0:
            release = min((self.play_length - local_time) / self.fade_out_length, 1.0)
        return max(min(attack, release), 0.0)


@dataclass(frozen=True, slots=True)
class ScheduledSegment:
    segment: PlaybackSegment
    start_time: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.segment.play_length

    @property
    def track_id(self) -> str:
        return self.segment.track_id


@dataclass(frozen=True, slots=True)
class SleepDeadline:
    armed_at: float
    duration_sec: float

    @property
    def fires_at(self) -> float:
        return self.armed_at + self.duration_sec

    def remaining(self, now: float) -> float:
        return max(self.fires_at - now, 0.0)


@dataclass(frozen=True, slots=True)
class TransportEvent:
    previous: TransportState
    current: TransportState
    reason: str
    position: float
    # Increases with every event a transport emits; listeners use it to drop stale ones.
    sequence: int = 0

    @property
    def left_playing(self) -> bool:
        return self.previous == TransportState.PLAYING and self.current != TransportState.PLAYING

    @property
    def entered_playing(self) -> bool:
        return self.previous != TransportState.PLAYING and self.current == TransportState.PLAYING
