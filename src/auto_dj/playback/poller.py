"""Periodic position sampling for listeners such as a UI or visualizer."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

from auto_dj.playback.models import TransportEvent, TransportState
from auto_dj.playback.tasks import ScheduledTask, TaskScheduler
from auto_dj.playback.transport import Transport

DEFAULT_POLL_INTERVAL_SEC = 0.1


@dataclass(frozen=True, slots=True)
class PositionUpdate:
    state: TransportState
    position: float
    total_duration: float
    track_index: int | None
    track_id: str | None


PositionListener = Callable[[PositionUpdate], None]


class PositionPoller:
    """Samples the transport while it plays and signals the natural end.

    Polling starts when the transport enters PLAYING and stops when it leaves;
    a final update is published on the way out.
    """

    def __init__(
        self,
        transport: Transport,
        scheduler: TaskScheduler,
        interval_sec: float = DEFAULT_POLL_INTERVAL_SEC,
    ) -> None:
        if interval_sec <= 0.0:
            raise ValueError("interval_sec must be positive")
        self._transport = transport
        self._scheduler = scheduler
        self._interval_sec = interval_sec
        self._lock = threading.Lock()
        self._task: ScheduledTask | None = None
        self._listeners: list[PositionListener] = []
        self._last_update: PositionUpdate | None = None
        self._last_sequence = 0
        transport.add_listener(self._on_transport_event)

    @property
    def interval_sec(self) -> float:
        return self._interval_sec

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._task is not None

    @property
    def last_update(self) -> PositionUpdate | None:
        return self._last_update

    def add_listener(self, listener: PositionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def start(self) -> None:
        with self._lock:
            self._start_locked()

    def stop(self) -> None:
        with self._lock:
            self._stop_locked()

    def poll(self) -> PositionUpdate:
        if self._transport.is_finished() and self._transport.finish():
            # The finish transition already stopped polling and published.
            return self._last_update or self.sample()
        update = self.sample()
        self._publish(update)
        return update

    def sample(self) -> PositionUpdate:
        located = self._transport.current_track()
        return PositionUpdate(
            state=self._transport.state,
            position=self._transport.current_position(),
            total_duration=self._transport.total_duration(),
            track_index=located.index if located else None,
            track_id=located.track_id if located else None,
        )

    def _tick(self) -> None:
        with self._lock:
            if self._task is None:
                return
            self._task = self._scheduler.call_later(self._interval_sec, self._tick, name="position-poll")
        self.poll()

    def _publish(self, update: PositionUpdate) -> None:
        self._last_update = update
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(update)

    def _start_locked(self) -> None:
        if self._task is not None:
            return
        self._task = self._scheduler.call_later(self._interval_sec, self._tick, name="position-poll")

    def _stop_locked(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None

    def _on_transport_event(self, event: TransportEvent) -> None:
        if not (event.entered_playing or event.left_playing):
            return
        with self._lock:
            # A newer transition already reached us; this one is stale.
            if event.sequence <= self._last_sequence:
                return
            self._last_sequence = event.sequence
            if event.entered_playing:
                self._start_locked()
                return
            self._stop_locked()
        self._publish(self.sample())
