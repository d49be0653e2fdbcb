"""Sleep timer: a single deferred stop tied to the transport's PLAYING state."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from auto_dj.playback.models import SleepDeadline, TransportEvent
from auto_dj.playback.tasks import ScheduledTask, TaskScheduler
from auto_dj.playback.transport import Transport

logger = logging.getLogger(__name__)

MIN_TIMELINE_FOR_SLEEP_SEC = 600.0


@dataclass(frozen=True, slots=True)
class SleepPreset:
    label: str
    duration_sec: float


SLEEP_PRESETS: tuple[SleepPreset, ...] = (
    SleepPreset("10 minutes", 600.0),
    SleepPreset("20 minutes", 1200.0),
    SleepPreset("30 minutes", 1800.0),
    SleepPreset("40 minutes", 2400.0),
    SleepPreset("50 minutes", 3000.0),
    SleepPreset("1 hour", 3600.0),
    SleepPreset("2 hours", 7200.0),
    SleepPreset("4 hours", 14400.0),
)


def available_sleep_presets(total_duration_sec: float) -> list[SleepPreset]:
    """Presets worth offering for a timeline of the given length."""
    if total_duration_sec < MIN_TIMELINE_FOR_SLEEP_SEC:
        return []
    return [preset for preset in SLEEP_PRESETS if total_duration_sec > preset.duration_sec]


class SleepTimer:
    def __init__(self, transport: Transport, scheduler: TaskScheduler) -> None:
        self._transport = transport
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._deadline: SleepDeadline | None = None
        self._task: ScheduledTask | None = None
        self._generation = 0
        # Sequence of the transport event the deadline was armed under, and of
        # the newest event seen leaving PLAYING.
        self._armed_sequence = 0
        self._left_sequence = 0
        transport.add_listener(self._on_transport_event)

    @property
    def deadline(self) -> SleepDeadline | None:
        with self._lock:
            return self._deadline

    @property
    def is_armed(self) -> bool:
        return self.deadline is not None

    def remaining(self) -> float | None:
        deadline = self.deadline
        if deadline is None:
            return None
        return deadline.remaining(self._scheduler.now())

    def arm(self, duration_sec: float) -> bool:
        if duration_sec <= 0.0:
            raise ValueError("sleep duration must be positive")
        sequence = self._transport.playing_sequence()
        if sequence is None:
            logger.debug("sleep timer not armed: transport is %s", self._transport.state.value)
            return False
        with self._lock:
            if self._left_sequence > sequence:
                # The run sampled above has already ended.
                return False
            self._cancel_locked()
            self._armed_sequence = sequence
            self._generation += 1
            generation = self._generation
            self._deadline = SleepDeadline(armed_at=self._scheduler.now(), duration_sec=duration_sec)
            self._task = self._scheduler.call_later(duration_sec, lambda: self._fire(generation), name="sleep")
        logger.info("sleep timer armed for %.0fs", duration_sec)
        return True

    def disarm(self) -> bool:
        with self._lock:
            return self._cancel_locked()

    def _cancel_locked(self) -> bool:
        if self._task is None:
            return False
        self._task.cancel()
        self._task = None
        self._deadline = None
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A stale task lost a race with disarm/re-arm.
            if generation != self._generation or self._task is None:
                return
            self._task = None
            self._deadline = None
        logger.info("sleep timer elapsed; stopping playback")
        self._transport.stop()

    def _on_transport_event(self, event: TransportEvent) -> None:
        if not event.left_playing:
            return
        with self._lock:
            self._left_sequence = max(self._left_sequence, event.sequence)
            # Events delivered late from a run that ended before arming are ignored.
            if event.sequence <= self._armed_sequence or not self._cancel_locked():
                return
        logger.debug("sleep timer disarmed by transport %s", event.reason)
