"""Crossfade segment planning from a timeline offset."""

from __future__ import annotations

from collections.abc import Sequence

from auto_dj.playback.models import PlaybackSegment, Track
from auto_dj.playback.timeline import locate

DEFAULT_ATTACK_SEC = 0.05
DEFAULT_CROSSFADE_SEC = 4.0


def plan_segments(
    tracks: Sequence[Track],
    start_position: float,
    crossfade_sec: float = DEFAULT_CROSSFADE_SEC,
    attack_sec: float = DEFAULT_ATTACK_SEC,
) -> list[PlaybackSegment]:
    """Build the ordered segment list for a run starting at ``start_position``.

    Each segment after the first begins ``crossfade_sec`` before the previous
    one ends. Offsets are relative to the run start; a segment that would begin
    before offset 0 is trimmed to start at 0 from the matching point inside its
    track, and dropped if it lies entirely before 0. Trimming, rather than
    starting every later track from its beginning, keeps each track at the
    offset the timeline gives it and never schedules output in the past.
    """
    if crossfade_sec < 0.0:
        raise ValueError("crossfade_sec must be >= 0")
    if attack_sec < 0.0:
        raise ValueError("attack_sec must be >= 0")

    located = locate(tracks, start_position)
    if located is None:
        return []

    segments: list[PlaybackSegment] = []
    output_cursor = 0.0
    intra = located.intra_offset
    for index in range(located.index, len(tracks)):
        track = tracks[index]
        if track.duration_sec <= 0.0:
            continue
        full_length = track.duration_sec - intra
        start_offset = output_cursor
        intra_start = intra
        play_length = full_length
        if start_offset < 0.0:
            deficit = -start_offset
            intra_start += deficit
            play_length -= deficit
            start_offset = 0.0

        if play_length > 0.0:
            segments.append(
                PlaybackSegment(
                    track_index=index,
                    track_id=track.track_id,
                    buffer=track.buffer,
                    intra_start=intra_start,
                    play_length=play_length,
                    fade_in_length=attack_sec,
                    fade_out_length=crossfade_sec,
                    start_offset=start_offset,
                )
            )

        output_cursor += full_length - crossfade_sec
        intra = 0.0
    return segments
