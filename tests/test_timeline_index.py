import pytest

from auto_dj.playback.models import LocatedTrack, Track
from auto_dj.playback.timeline import clamp_position, locate, retarget_position, total_duration, track_start


def _tracks(*durations: float) -> list[Track]:
    return [Track(track_id=f"t{idx}", name=f"t{idx}.wav", duration_sec=d) for idx, d in enumerate(durations)]


def test_total_duration_sums_tracks() -> None:
    assert total_duration(_tracks(10.0, 8.0, 5.0)) == pytest.approx(23.0)
    assert total_duration([]) == 0.0


def test_locate_maps_global_position_to_track() -> None:
    tracks = _tracks(10.0, 8.0, 5.0)

    assert locate(tracks, 0.0) == LocatedTrack(index=0, track_id="t0", intra_offset=0.0)
    assert locate(tracks, 9.0) == LocatedTrack(index=0, track_id="t0", intra_offset=9.0)
    located = locate(tracks, 12.5)
    assert located is not None
    assert located.index == 1
    assert located.intra_offset == pytest.approx(2.5)


def test_locate_boundary_belongs_to_next_track() -> None:
    located = locate(_tracks(10.0, 8.0), 10.0)
    assert located is not None
    assert located.index == 1
    assert located.intra_offset == 0.0


def test_locate_past_end_and_empty_catalog() -> None:
    assert locate(_tracks(10.0, 8.0), 18.0) is None
    assert locate(_tracks(10.0, 8.0), 100.0) is None
    assert locate([], 0.0) is None


def test_locate_skips_zero_length_tracks() -> None:
    tracks = _tracks(0.0, 5.0, 0.0, 5.0)
    first = locate(tracks, 0.0)
    second = locate(tracks, 5.0)
    assert first is not None and first.index == 1
    assert second is not None and second.index == 3


def test_negative_position_is_treated_as_start() -> None:
    located = locate(_tracks(10.0), -3.0)
    assert located is not None
    assert located.intra_offset == 0.0
    assert clamp_position(-3.0, 10.0) == 0.0
    assert clamp_position(12.0, 10.0) == 10.0


def test_track_start_offsets() -> None:
    tracks = _tracks(10.0, 8.0, 5.0)
    assert track_start(tracks, "t0") == 0.0
    assert track_start(tracks, "t2") == pytest.approx(18.0)
    assert track_start(tracks, "missing") is None


def test_retarget_keeps_intra_offset_when_earlier_track_removed() -> None:
    before = _tracks(10.0, 8.0, 5.0)
    after = [before[0], before[2]]

    # Inside t2 at intra 2.0: t1 vanished, so t2 now starts at 10.
    assert retarget_position(20.0, before, after) == pytest.approx(12.0)


def test_retarget_follows_reordered_track() -> None:
    before = _tracks(10.0, 8.0, 5.0)
    after = [before[2], before[0], before[1]]
    assert retarget_position(3.0, before, after) == pytest.approx(8.0)


def test_retarget_end_of_timeline_moves_to_new_end() -> None:
    before = _tracks(10.0, 8.0)
    after = _tracks(10.0, 8.0, 5.0)
    assert retarget_position(18.0, before, after) == pytest.approx(23.0)


def test_retarget_removed_track_position_is_clamped() -> None:
    before = _tracks(10.0, 8.0)
    after = [before[0]]
    assert retarget_position(12.0, before, after) == pytest.approx(10.0)
