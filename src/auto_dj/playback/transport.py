"""Transport: play/pause/stop/seek over the track catalog.

The transport owns one :class:`TransportSnapshot` and the tuple of segments
handed to the output graph for the current run. Every (re)start cancels the
previous run before scheduling the next, so old and new segments are never
pending together.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Callable, TypeVar

from auto_dj.playback import transitions
from auto_dj.playback.catalog import TrackCatalog
from auto_dj.playback.clock import Clock
from auto_dj.playback.errors import OutputGraphError, TrackInUseError
from auto_dj.playback.models import LocatedTrack, ScheduledSegment, Track, TransportEvent, TransportState
from auto_dj.playback.output import OutputGraph
from auto_dj.playback.planner import DEFAULT_ATTACK_SEC, DEFAULT_CROSSFADE_SEC, plan_segments
from auto_dj.playback.timeline import clamp_position, locate, retarget_position, total_duration
from auto_dj.playback.transitions import TransportSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_MARGIN_SEC = 0.05

TransitionListener = Callable[[TransportEvent], None]
T = TypeVar("T")


class Transport:
    def __init__(
        self,
        catalog: TrackCatalog,
        output: OutputGraph,
        clock: Clock,
        crossfade_sec: float = DEFAULT_CROSSFADE_SEC,
        attack_sec: float = DEFAULT_ATTACK_SEC,
        schedule_margin_sec: float = DEFAULT_SCHEDULE_MARGIN_SEC,
    ) -> None:
        if crossfade_sec < 0.0:
            raise ValueError("crossfade_sec must be >= 0")
        if attack_sec < 0.0:
            raise ValueError("attack_sec must be >= 0")
        self._catalog = catalog
        self._output = output
        self._clock = clock
        self._crossfade_sec = crossfade_sec
        self._attack_sec = attack_sec
        self._schedule_margin_sec = max(schedule_margin_sec, 0.0)

        self._lock = threading.RLock()
        self._snapshot = TransportSnapshot()
        self._scheduled: tuple[ScheduledSegment, ...] = ()
        self._listeners: list[TransitionListener] = []
        self._last_error: OutputGraphError | None = None
        self._sequence = 0

    @property
    def catalog(self) -> TrackCatalog:
        return self._catalog

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def state(self) -> TransportState:
        with self._lock:
            return self._snapshot.state

    @property
    def crossfade_sec(self) -> float:
        return self._crossfade_sec

    @crossfade_sec.setter
    def crossfade_sec(self, value: float) -> None:
        if value < 0.0:
            raise ValueError("crossfade_sec must be >= 0")
        # Applies from the next play/seek; the running schedule is left alone.
        self._crossfade_sec = value

    @property
    def last_error(self) -> OutputGraphError | None:
        return self._last_error

    def snapshot(self) -> TransportSnapshot:
        with self._lock:
            return self._snapshot

    def add_listener(self, listener: TransitionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def playing_sequence(self) -> int | None:
        """Sequence number of the latest event if PLAYING, else ``None``."""
        with self._lock:
            if self._snapshot.state != TransportState.PLAYING:
                return None
            return self._sequence

    def total_duration(self) -> float:
        return self._catalog.total_duration()

    def current_position(self) -> float:
        with self._lock:
            return self._snapshot.position_at(self._clock.now(), self._catalog.total_duration())

    def current_track(self) -> LocatedTrack | None:
        with self._lock:
            if self._snapshot.state == TransportState.STOPPED:
                return None
            tracks = self._catalog.snapshot()
            position = self._snapshot.position_at(self._clock.now(), total_duration(tracks))
            return locate(tracks, position)

    def is_finished(self) -> bool:
        with self._lock:
            return transitions.is_finished(self._snapshot, self._clock.now(), self._catalog.total_duration())

    def scheduled_segments(self) -> tuple[ScheduledSegment, ...]:
        with self._lock:
            return self._scheduled

    def play(self, from_position: float | None = None) -> bool:
        """Start (or restart) output at ``from_position``; ``None`` resumes.

        Returns ``False`` when nothing was started: empty catalog, a target at
        the end of the timeline, or an output graph failure.
        """
        events: list[TransportEvent] = []
        with self._lock:
            started = self._play_locked(from_position, "play", events)
        self._dispatch(events)
        return started

    def resume(self) -> bool:
        return self.play(None)

    def pause(self) -> bool:
        events: list[TransportEvent] = []
        with self._lock:
            if self._snapshot.state != TransportState.PLAYING:
                return False
            paused = transitions.pause(self._snapshot, self._clock.now(), self._catalog.total_duration())
            try:
                self._cancel_output()
            except OutputGraphError as exc:
                self._fail_locked(exc, paused.anchor_position, events)
                result = False
            else:
                self._scheduled = ()
                self._set_snapshot(paused, "pause", events)
                result = True
        self._dispatch(events)
        return result

    def stop(self) -> None:
        events: list[TransportEvent] = []
        with self._lock:
            try:
                self._cancel_output()
            except OutputGraphError as exc:
                self._record_error(exc)
            self._scheduled = ()
            self._set_snapshot(transitions.stop(self._snapshot), "stop", events)
        self._dispatch(events)

    def seek(self, position: float) -> None:
        events: list[TransportEvent] = []
        with self._lock:
            if self._snapshot.state == TransportState.PLAYING:
                self._play_locked(position, "seek", events)
            else:
                total = self._catalog.total_duration()
                self._set_snapshot(transitions.seek_frozen(self._snapshot, position, total), "seek", events)
        self._dispatch(events)

    def finish(self) -> bool:
        """Natural end of the timeline: stop, leaving the position at the end."""
        events: list[TransportEvent] = []
        with self._lock:
            if self._snapshot.state != TransportState.PLAYING:
                return False
            self._finish_locked(self._catalog.total_duration(), events)
        self._dispatch(events)
        return True

    def edit_catalog(self, mutation: Callable[[TrackCatalog], T], protect_track_id: str | None = None) -> T:
        """Apply ``mutation`` to the catalog and carry the position across it.

        ``protect_track_id`` names a track that must not be the one currently
        playing; if it is, :class:`TrackInUseError` is raised and nothing changes.
        """
        events: list[TransportEvent] = []
        with self._lock:
            now = self._clock.now()
            before = self._catalog.snapshot()
            old_total = total_duration(before)
            old_position = self._snapshot.position_at(now, old_total)
            if protect_track_id is not None and self._snapshot.state == TransportState.PLAYING:
                playing = locate(before, old_position)
                if playing is not None and playing.track_id == protect_track_id:
                    raise TrackInUseError(protect_track_id)

            result = mutation(self._catalog)

            after = self._catalog.snapshot()
            new_position = self._position_after_edit(old_position, before, after)
            if new_position != old_position:
                updated = transitions.retarget(self._snapshot, old_position, new_position)
                self._set_snapshot(updated, "catalog", events)
        self._dispatch(events)
        return result

    def _position_after_edit(self, old_position: float, before: Sequence[Track], after: Sequence[Track]) -> float:
        if self._snapshot.state != TransportState.STOPPED:
            return retarget_position(old_position, before, after)
        old_total = total_duration(before)
        new_total = total_duration(after)
        if old_total > 0.0 and old_position >= old_total:
            return new_total
        return clamp_position(old_position, new_total)

    def _play_locked(self, from_position: float | None, reason: str, events: list[TransportEvent]) -> bool:
        tracks = self._catalog.snapshot()
        total = total_duration(tracks)
        if not tracks or total <= 0.0:
            logger.debug("play ignored: catalog is empty")
            return False

        now = self._clock.now()
        target = transitions.resolve_play_target(self._snapshot, from_position, now, total)
        if target >= total:
            self._finish_locked(total, events)
            return False

        segments = plan_segments(tracks, target, self._crossfade_sec, self._attack_sec)
        base_time = now + self._schedule_margin_sec
        scheduled = tuple(
            ScheduledSegment(segment=segment, start_time=base_time + segment.start_offset) for segment in segments
        )
        try:
            self._cancel_output()
            self._scheduled = ()
            self._call_output("schedule", self._output.schedule, scheduled)
        except OutputGraphError as exc:
            self._fail_locked(exc, target, events)
            return False

        self._scheduled = scheduled
        self._set_snapshot(transitions.start_playing(target, now), reason, events)
        logger.debug("scheduled %d segment(s) from %.3fs", len(scheduled), target)
        return True

    def _finish_locked(self, total: float, events: list[TransportEvent]) -> None:
        try:
            self._cancel_output()
        except OutputGraphError as exc:
            self._record_error(exc)
        self._scheduled = ()
        self._set_snapshot(transitions.finish(total), "finish", events)

    def _fail_locked(self, exc: OutputGraphError, position: float, events: list[TransportEvent]) -> None:
        self._record_error(exc)
        try:
            self._cancel_output()
        except OutputGraphError as cancel_exc:
            logger.error("output graph cancel after failure also failed: %s", cancel_exc)
        self._scheduled = ()
        self._set_snapshot(transitions.halt_at(position), "output-error", events)

    def _record_error(self, exc: OutputGraphError) -> None:
        self._last_error = exc
        logger.error("output graph failure: %s", exc, exc_info=exc)

    def _cancel_output(self) -> None:
        self._call_output("cancel_all", self._output.cancel_all)

    @staticmethod
    def _call_output(action: str, func: Callable[..., None], *args: object) -> None:
        try:
            func(*args)
        except OutputGraphError:
            raise
        except Exception as exc:
            raise OutputGraphError(f"output graph {action} failed: {exc}") from exc

    def _set_snapshot(self, snapshot: TransportSnapshot, reason: str, events: list[TransportEvent]) -> None:
        previous = self._snapshot
        self._snapshot = snapshot
        if previous == snapshot and reason not in {"play", "seek"}:
            return
        if previous.state != snapshot.state:
            logger.debug(
                "transport %s -> %s (%s)",
                previous.state.value,
                snapshot.state.value,
                reason,
                extra={"reason": reason, "position": snapshot.anchor_position},
            )
        self._sequence += 1
        events.append(
            TransportEvent(
                previous=previous.state,
                current=snapshot.state,
                reason=reason,
                position=snapshot.anchor_position,
                sequence=self._sequence,
            )
        )

    def _dispatch(self, events: list[TransportEvent]) -> None:
        # Dispatch runs outside the lock, so listeners on other threads may see
        # events out of order; each one carries its sequence number for that.
        if not events:
            return
        with self._lock:
            listeners = list(self._listeners)
        for event in events:
            for listener in listeners:
                listener(event)
