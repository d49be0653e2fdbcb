from collections.abc import Sequence

import pytest

from auto_dj.playback.catalog import TrackCatalog
from auto_dj.playback.clock import ManualClock
from auto_dj.playback.errors import OutputGraphError, TrackInUseError
from auto_dj.playback.models import ScheduledSegment, Track, TransportEvent, TransportState
from auto_dj.playback.transport import Transport


class RecordingOutput:
    def __init__(self, fail_on_schedule: bool = False) -> None:
        self.fail_on_schedule = fail_on_schedule
        self.batches: list[list[ScheduledSegment]] = []
        self.cancel_count = 0
        self.gains: list[tuple[float, float]] = []

    def schedule(self, segments: Sequence[ScheduledSegment]) -> None:
        if self.fail_on_schedule:
            raise RuntimeError("device unavailable")
        self.batches.append(list(segments))

    def cancel_all(self) -> None:
        self.cancel_count += 1

    def set_master_gain(self, gain: float, ramp_sec: float = 0.05) -> None:
        self.gains.append((gain, ramp_sec))


def _transport(*durations: float, output: RecordingOutput | None = None) -> tuple[Transport, ManualClock, RecordingOutput]:
    catalog = TrackCatalog(
        Track(track_id=name, name=f"{name}.wav", duration_sec=d) for name, d in zip("ABCDEF", durations)
    )
    clock = ManualClock(100.0)
    out = output or RecordingOutput()
    return Transport(catalog, out, clock, crossfade_sec=4.0), clock, out


def test_play_schedules_crossfaded_segments_against_clock() -> None:
    transport, clock, output = _transport(10.0, 8.0, 5.0)

    assert transport.total_duration() == pytest.approx(23.0)
    assert transport.play(0.0) is True
    assert transport.state == TransportState.PLAYING

    batch = output.batches[-1]
    assert [item.track_id for item in batch] == ["A", "B", "C"]
    assert [item.start_time for item in batch] == pytest.approx([100.05, 106.05, 110.05])

    clock.advance(3.0)
    assert transport.current_position() == pytest.approx(3.0)
    located = transport.current_track()
    assert located is not None
    assert located.track_id == "A"


def test_play_on_empty_catalog_is_rejected() -> None:
    transport, _, output = _transport()
    assert transport.play() is False
    assert transport.state == TransportState.STOPPED
    assert output.batches == []


def test_stop_is_idempotent() -> None:
    transport, clock, output = _transport(10.0, 8.0)
    events: list[TransportEvent] = []
    transport.add_listener(events.append)

    transport.play(0.0)
    clock.advance(2.0)
    transport.stop()
    transport.stop()

    assert transport.state == TransportState.STOPPED
    assert transport.current_position() == 0.0
    assert transport.scheduled_segments() == ()
    assert [event.reason for event in events] == ["play", "stop"]

    transport.stop()
    assert len(events) == 2
    assert output.cancel_count >= 2


def test_pause_seek_resume_round_trip() -> None:
    transport, clock, output = _transport(10.0, 8.0, 5.0)
    transport.play(0.0)
    clock.advance(3.0)

    assert transport.pause() is True
    assert transport.state == TransportState.PAUSED
    clock.advance(10.0)
    assert transport.current_position() == pytest.approx(3.0)
    assert transport.current_track() is not None

    transport.seek(12.0)
    assert transport.state == TransportState.PAUSED
    assert transport.current_position() == pytest.approx(12.0)
    scheduled_before = len(output.batches)

    assert transport.resume() is True
    assert len(output.batches) == scheduled_before + 1
    first = output.batches[-1][0]
    assert first.track_id == "B"
    assert first.segment.intra_start == pytest.approx(2.0)


def test_pause_when_not_playing_is_noop() -> None:
    transport, _, _ = _transport(10.0)
    assert transport.pause() is False
    assert transport.state == TransportState.STOPPED


def test_seek_while_playing_replans() -> None:
    transport, clock, output = _transport(10.0, 8.0, 5.0)
    transport.play(0.0)
    clock.advance(1.0)
    cancels = output.cancel_count

    transport.seek(20.0)

    assert transport.state == TransportState.PLAYING
    assert output.cancel_count > cancels
    assert [item.track_id for item in output.batches[-1]] == ["C"]
    assert transport.current_position() == pytest.approx(20.0)


def test_seek_is_clamped_to_timeline() -> None:
    transport, _, _ = _transport(10.0, 8.0)
    transport.seek(-5.0)
    assert transport.current_position() == 0.0
    transport.seek(50.0)
    assert transport.current_position() == pytest.approx(18.0)


def test_play_from_stopped_at_end_rewinds() -> None:
    transport, clock, output = _transport(10.0, 8.0)
    transport.play(0.0)
    clock.advance(20.0)
    assert transport.is_finished() is True
    assert transport.finish() is True
    assert transport.state == TransportState.STOPPED
    assert transport.current_position() == pytest.approx(18.0)

    assert transport.play() is True
    assert output.batches[-1][0].track_id == "A"
    assert output.batches[-1][0].segment.intra_start == 0.0


def test_play_past_end_while_playing_finishes() -> None:
    transport, _, _ = _transport(10.0, 8.0)
    transport.play(0.0)

    assert transport.play(30.0) is False
    assert transport.state == TransportState.STOPPED
    assert transport.current_position() == pytest.approx(18.0)


def test_output_failure_halts_at_requested_position() -> None:
    output = RecordingOutput(fail_on_schedule=True)
    transport, _, _ = _transport(10.0, 8.0, output=output)
    events: list[TransportEvent] = []
    transport.add_listener(events.append)

    assert transport.play(5.0) is False

    assert transport.state == TransportState.STOPPED
    assert transport.current_position() == pytest.approx(5.0)
    assert isinstance(transport.last_error, OutputGraphError)
    assert "device unavailable" in str(transport.last_error)
    assert events[-1].reason == "output-error"


def test_delete_finished_track_while_later_track_plays() -> None:
    transport, clock, _ = _transport(10.0, 8.0, 5.0)
    transport.play(20.0)
    clock.advance(1.0)

    removed = transport.edit_catalog(lambda catalog: catalog.remove("B"), protect_track_id="B")

    assert removed.track_id == "B"
    assert transport.total_duration() == pytest.approx(15.0)
    assert transport.state == TransportState.PLAYING
    assert transport.current_position() == pytest.approx(13.0)
    located = transport.current_track()
    assert located is not None and located.track_id == "C"


def test_delete_playing_track_is_refused() -> None:
    transport, clock, _ = _transport(10.0, 8.0, 5.0)
    transport.play(20.0)
    clock.advance(1.0)

    with pytest.raises(TrackInUseError):
        transport.edit_catalog(lambda catalog: catalog.remove("C"), protect_track_id="C")

    assert [track.track_id for track in transport.catalog.snapshot()] == ["A", "B", "C"]
    assert transport.state == TransportState.PLAYING

    transport.stop()
    transport.edit_catalog(lambda catalog: catalog.remove("C"), protect_track_id="C")
    assert transport.total_duration() == pytest.approx(18.0)


def test_insert_while_stopped_at_end_moves_to_new_end() -> None:
    transport, _, _ = _transport(10.0)
    transport.seek(10.0)
    transport.edit_catalog(lambda catalog: catalog.append(Track(track_id="N", name="N.wav", duration_sec=5.0)))
    assert transport.current_position() == pytest.approx(15.0)


def test_crossfade_setter_validates() -> None:
    transport, _, output = _transport(10.0, 8.0)
    transport.crossfade_sec = 2.0
    transport.play(0.0)
    assert output.batches[-1][1].start_time == pytest.approx(100.05 + 8.0)
    with pytest.raises(ValueError):
        transport.crossfade_sec = -1.0


def test_listener_runs_after_lock_release() -> None:
    transport, _, _ = _transport(10.0)
    seen: list[TransportState] = []

    def listener(event: TransportEvent) -> None:
        # Re-entering the transport from a listener must not deadlock.
        seen.append(transport.state)

    transport.add_listener(listener)
    transport.play(0.0)
    transport.pause()
    assert seen == [TransportState.PLAYING, TransportState.PAUSED]


def test_insert_and_reorder_while_playing_keep_the_run() -> None:
    transport, clock, output = _transport(10.0, 8.0, 5.0, 3.0)
    transport.play(12.0)
    clock.advance(1.0)
    cancels = output.cancel_count
    batches = len(output.batches)

    transport.edit_catalog(lambda catalog: catalog.insert(0, Track(track_id="N", name="N.wav", duration_sec=4.0)))
    transport.edit_catalog(lambda catalog: catalog.move("D", 3))

    assert [track.track_id for track in transport.catalog.snapshot()] == ["N", "A", "B", "D", "C"]
    assert transport.state == TransportState.PLAYING
    assert output.cancel_count == cancels
    assert len(output.batches) == batches
    located = transport.current_track()
    assert located is not None
    assert located.track_id == "B"
    assert located.intra_offset == pytest.approx(3.0)
    assert transport.current_position() == pytest.approx(17.0)

    transport.seek(transport.current_position())
    assert [item.track_id for item in output.batches[-1]] == ["B", "D", "C"]
    assert output.batches[-1][0].segment.intra_start == pytest.approx(3.0)


def test_event_sequence_numbers_increase() -> None:
    transport, _, _ = _transport(10.0)
    events: list[TransportEvent] = []
    transport.add_listener(events.append)

    transport.play(0.0)
    assert transport.playing_sequence() == events[-1].sequence
    transport.pause()
    assert transport.playing_sequence() is None
    transport.play()
    transport.stop()

    sequences = [event.sequence for event in events]
    assert sequences == sorted(sequences)
    assert len(set(sequences)) == len(sequences)
