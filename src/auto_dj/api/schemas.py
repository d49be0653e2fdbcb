"""FastAPI request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class TrackItem(BaseModel):
    track_id: str
    name: str
    duration_sec: float
    index: int


class TrackListResponse(BaseModel):
    tracks: list[TrackItem]
    total_duration_sec: float


class LoadRequest(BaseModel):
    paths: list[str] = Field(min_length=1)


class LoadFailureItem(BaseModel):
    source: str
    reason: str


class LoadResponse(BaseModel):
    loaded: list[TrackItem]
    failures: list[LoadFailureItem]


class MoveRequest(BaseModel):
    to_index: int | None = Field(default=None, ge=0)
    direction: Literal["up", "down"] | None = None


class MoveResponse(BaseModel):
    moved: bool
    index: int


class PlayRequest(BaseModel):
    position_sec: float | None = Field(default=None, ge=0.0)


class SeekRequest(BaseModel):
    position_sec: float = Field(ge=0.0)


class TransportResponse(BaseModel):
    state: Literal["stopped", "playing", "paused"]
    position_sec: float
    total_duration_sec: float
    current_track_index: int | None = None
    current_track_id: str | None = None
    volume: float
    crossfade_sec: float
    sleep_remaining_sec: float | None = None
    accepted: bool = True


class VolumeRequest(BaseModel):
    volume: float = Field(ge=0.0, le=1.0)


class VolumeResponse(BaseModel):
    volume: float


class SleepPresetItem(BaseModel):
    label: str
    duration_sec: float


class SleepPresetsResponse(BaseModel):
    presets: list[SleepPresetItem]


class SleepRequest(BaseModel):
    duration_sec: float = Field(gt=0.0)


class SleepResponse(BaseModel):
    armed: bool
    remaining_sec: float | None = None
