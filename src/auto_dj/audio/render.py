"""Offline output graph: mixes scheduled segments into sample buffers and WAV files."""

from __future__ import annotations

import math
import threading
import wave
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from auto_dj.playback.clock import Clock
from auto_dj.playback.models import ScheduledSegment

_EPSILON = 1e-9


@dataclass(slots=True)
class _Voice:
    scheduled: ScheduledSegment
    stop_time: float | None = None


@dataclass(slots=True)
class _GainChange:
    at: float
    start_gain: float
    target: float
    ramp_sec: float


class OfflineMixRenderer:
    """Records scheduled segments on a shared clock and renders them on demand.

    Envelopes are evaluated per output frame against each segment's own start
    time. Overlapping voices are summed and only clipped at the output, so a
    crossfade may briefly exceed unity before clipping.

    Unless ``keep_history`` is set, cancelled or finished voices and completed
    gain ramps are dropped as the clock moves on, so only audio from the most
    recent cancel onward can still be rendered.
    """

    def __init__(self, clock: Clock, sample_rate: int = 48_000, channels: int = 2, keep_history: bool = False) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if channels <= 0:
            raise ValueError("channels must be positive")
        self._clock = clock
        self.sample_rate = sample_rate
        self.channels = channels
        self.keep_history = keep_history
        self._lock = threading.Lock()
        self._voices: list[_Voice] = []
        self._gain_changes: list[_GainChange] = []
        self._base_gain = 1.0
        self.cancel_count = 0

    def schedule(self, segments: Sequence[ScheduledSegment]) -> None:
        now = self._clock.now()
        with self._lock:
            self._prune_locked(now)
            self._voices.extend(_Voice(scheduled=segment) for segment in segments)

    def cancel_all(self) -> None:
        now = self._clock.now()
        with self._lock:
            for voice in self._voices:
                if voice.stop_time is None:
                    voice.stop_time = now
            self.cancel_count += 1
            self._prune_locked(now)

    def set_master_gain(self, gain: float, ramp_sec: float = 0.05) -> None:
        now = self._clock.now()
        with self._lock:
            current = self._master_gain_at_locked(now)
            self._prune_locked(now)
            self._gain_changes.append(
                _GainChange(at=now, start_gain=current, target=min(max(gain, 0.0), 1.0), ramp_sec=max(ramp_sec, 0.0))
            )

    def master_gain_at(self, time_sec: float) -> float:
        with self._lock:
            return self._master_gain_at_locked(time_sec)

    def active_segments(self) -> list[ScheduledSegment]:
        with self._lock:
            return [voice.scheduled for voice in self._voices if voice.stop_time is None]

    def history(self) -> list[tuple[ScheduledSegment, float | None]]:
        """Retained segments with the time each was cancelled (if it was).

        Holds every segment ever scheduled only when ``keep_history`` is set.
        """
        with self._lock:
            return [(voice.scheduled, voice.stop_time) for voice in self._voices]

    def clear(self) -> None:
        with self._lock:
            self._voices.clear()
            self._gain_changes.clear()
            self._base_gain = 1.0
            self.cancel_count = 0

    def render(self, start_time: float, end_time: float) -> list[list[float]]:
        frame_count = max(int(round((end_time - start_time) * self.sample_rate)), 0)
        out = [[0.0] * frame_count for _ in range(self.channels)]
        with self._lock:
            voices = list(self._voices)
            gains = [self._master_gain_at_locked(start_time + i / self.sample_rate) for i in range(frame_count)]

        for voice in voices:
            self._mix_voice(voice, start_time, frame_count, out)

        for channel in out:
            for index, value in enumerate(channel):
                channel[index] = _clip(value * gains[index])
        return out

    def render_to_wav(self, path: str | Path, start_time: float, end_time: float, sample_width: int = 2) -> Path:
        if sample_width not in {1, 2, 3, 4}:
            raise ValueError(f"unsupported sample width: {sample_width}")
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        samples = self.render(start_time, end_time)
        _write_wav(target, samples, self.sample_rate, sample_width)
        return target

    def _mix_voice(self, voice: _Voice, start_time: float, frame_count: int, out: list[list[float]]) -> None:
        segment = voice.scheduled.segment
        buffer = segment.buffer
        source_channels = getattr(buffer, "samples", None)
        if not source_channels:
            return
        source_rate = buffer.sample_rate
        source_frames = min(len(channel) for channel in source_channels)

        voice_start = voice.scheduled.start_time
        voice_end = voice.scheduled.end_time
        if voice.stop_time is not None:
            voice_end = min(voice_end, voice.stop_time)
        first = max(int(math.ceil((voice_start - start_time) * self.sample_rate - _EPSILON)), 0)
        last = min(int(math.ceil((voice_end - start_time) * self.sample_rate - _EPSILON)), frame_count)

        for index in range(first, last):
            local = (start_time + index / self.sample_rate) - voice_start
            gain = segment.gain_at(local)
            if gain <= 0.0:
                continue
            source_index = int((segment.intra_start + local) * source_rate)
            if source_index >= source_frames:
                break
            for channel in range(self.channels):
                source = source_channels[channel % len(source_channels)]
                out[channel][index] += source[source_index] * gain

    def _master_gain_at_locked(self, time_sec: float) -> float:
        # The latest change at or before time_sec wins; its start_gain already
        # accounts for any ramp it interrupted.
        gain = self._base_gain
        for change in self._gain_changes:
            if change.at > time_sec:
                break
            if change.ramp_sec > 0.0 and time_sec < change.at + change.ramp_sec:
                progress = (time_sec - change.at) / change.ramp_sec
                gain = change.start_gain + (change.target - change.start_gain) * progress
            else:
                gain = change.target
        return gain

    def _prune_locked(self, now: float) -> None:
        if self.keep_history:
            return
        self._voices = [
            voice
            for voice in self._voices
            if voice.stop_time is None and voice.scheduled.end_time > now
        ]

        started = [index for index, change in enumerate(self._gain_changes) if change.at <= now]
        if not started:
            return
        latest = self._gain_changes[started[-1]]
        if latest.at + latest.ramp_sec <= now:
            self._base_gain = latest.target
            del self._gain_changes[: started[-1] + 1]
        else:
            del self._gain_changes[: started[-1]]


def _write_wav(path: Path, samples: list[list[float]], sample_rate: int, sample_width: int) -> None:
    channels = len(samples)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        frames = bytearray()
        frame_count = min((len(channel) for channel in samples), default=0)
        for index in range(frame_count):
            for channel in range(channels):
                frames.extend(_encode_one_sample(samples[channel][index], sample_width))
        wav.writeframes(bytes(frames))


def _clip(value: float) -> float:
    if value > 1.0:
        return 1.0
    if value < -1.0:
        return -1.0
    return value


def _encode_one_sample(sample: float, sample_width: int) -> bytes:
    clipped = _clip(sample)
    if sample_width == 1:
        value = int(round((clipped * 127.5) + 128.0))
        return bytes([min(max(value, 0), 255)])
    if sample_width == 2:
        value = int(round(clipped * 32767.0))
        value = min(max(value, -32768), 32767)
        return value.to_bytes(2, "little", signed=True)
    if sample_width == 3:
        value = int(round(clipped * 8388607.0))
        value = min(max(value, -8388608), 8388607)
        return value.to_bytes(4, "little", signed=True)[:3]
    value = int(round(clipped * 2147483647.0))
    value = min(max(value, -2147483648), 2147483647)
    return value.to_bytes(4, "little", signed=True)
