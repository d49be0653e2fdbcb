"""Mapping between global timeline offsets and per-track offsets."""

from __future__ import annotations

import math
from collections.abc import Sequence

from auto_dj.playback.models import LocatedTrack, Track


def total_duration(tracks: Sequence[Track]) -> float:
    return math.fsum(track.duration_sec for track in tracks)


def clamp_position(position: float, total: float) -> float:
    return min(max(position, 0.0), max(total, 0.0))


def locate(tracks: Sequence[Track], position: float) -> LocatedTrack | None:
    """Return the track covering ``position``, or ``None`` past the end.

    Zero-length tracks are always considered fully consumed.
    """
    cursor = max(position, 0.0)
    for index, track in enumerate(tracks):
        duration = track.duration_sec
        if duration <= 0.0:
            continue
        if cursor < duration:
            return LocatedTrack(index=index, track_id=track.track_id, intra_offset=cursor)
        cursor -= duration
    return None


def track_start(tracks: Sequence[Track], track_id: str) -> float | None:
    offset = 0.0
    for track in tracks:
        if track.track_id == track_id:
            return offset
        offset += track.duration_sec
    return None


def retarget_position(position: float, before: Sequence[Track], after: Sequence[Track]) -> float:
    """Carry a timeline position across a catalog edit.

    The track under ``position`` keeps its intra-track offset wherever it now
    sits. A position at the end of a non-empty timeline stays at the end.
    """
    old_total = total_duration(before)
    new_total = total_duration(after)
    if old_total > 0.0 and position >= old_total:
        return new_total
    located = locate(before, position)
    if located is None:
        return clamp_position(position, new_total)
    start = track_start(after, located.track_id)
    if start is None:
        return clamp_position(position, new_total)
    return clamp_position(start + located.intra_offset, new_total)
