import pytest

from auto_dj.playback.catalog import TrackCatalog
from auto_dj.playback.errors import DuplicateTrackError, TrackNotFoundError
from auto_dj.playback.models import Track


def _track(track_id: str, duration: float = 1.0) -> Track:
    return Track(track_id=track_id, name=f"{track_id}.wav", duration_sec=duration)


def _ids(catalog: TrackCatalog) -> list[str]:
    return [track.track_id for track in catalog.snapshot()]


def test_append_insert_and_total_duration() -> None:
    catalog = TrackCatalog([_track("a", 10.0), _track("b", 8.0)])
    catalog.insert(1, _track("c", 5.0))
    catalog.insert(99, _track("d", 2.0))

    assert _ids(catalog) == ["a", "c", "b", "d"]
    assert len(catalog) == 4
    assert catalog.total_duration() == pytest.approx(25.0)
    assert catalog.index_of("b") == 2
    assert catalog.get("c").duration_sec == 5.0


def test_duplicate_ids_are_rejected() -> None:
    catalog = TrackCatalog([_track("a")])
    with pytest.raises(DuplicateTrackError):
        catalog.append(_track("a"))
    with pytest.raises(DuplicateTrackError):
        catalog.extend([_track("b"), _track("b")])
    assert _ids(catalog) == ["a"]


def test_remove_and_unknown_track() -> None:
    catalog = TrackCatalog([_track("a"), _track("b")])
    removed = catalog.remove("a")
    assert removed.track_id == "a"
    assert _ids(catalog) == ["b"]
    with pytest.raises(TrackNotFoundError) as exc_info:
        catalog.remove("a")
    assert "not found" in str(exc_info.value)
    assert catalog.contains("a") is False


def test_move_up_down_and_reorder() -> None:
    catalog = TrackCatalog([_track("a"), _track("b"), _track("c")])

    assert catalog.move_up("a") is False
    assert catalog.move_down("a") is True
    assert _ids(catalog) == ["b", "a", "c"]
    assert catalog.move_down("c") is False

    catalog.move("c", 0)
    assert _ids(catalog) == ["c", "b", "a"]

    catalog.reorder(["a", "b", "c"])
    assert _ids(catalog) == ["a", "b", "c"]
    with pytest.raises(ValueError):
        catalog.reorder(["a", "b"])


def test_snapshot_is_independent_of_later_edits() -> None:
    catalog = TrackCatalog([_track("a"), _track("b")])
    snapshot = catalog.snapshot()
    catalog.clear()
    assert len(snapshot) == 2
    assert len(catalog) == 0


def test_track_rejects_negative_duration() -> None:
    with pytest.raises(ValueError):
        Track(track_id="x", name="x.wav", duration_sec=-1.0)
