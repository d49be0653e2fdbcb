"""Decode service: raw WAV bytes to per-channel float sample buffers."""

from __future__ import annotations

import io
import wave
from dataclasses import dataclass
from pathlib import Path


class DecodeError(ValueError):
    """Raised when audio data is unsupported or corrupt."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message if source is None else f"{source}: {message}")
        self.source = source


@dataclass(slots=True)
class DecodedAudio:
    sample_rate: int
    channels: int
    samples: list[list[float]]

    @property
    def frame_count(self) -> int:
        if not self.samples:
            return 0
        return min(len(channel) for channel in self.samples)

    @property
    def duration_sec(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate


def decode_file(path: str | Path) -> DecodedAudio:
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise DecodeError(f"cannot read file ({exc.strerror or exc})", source=str(file_path)) from exc
    try:
        return decode_wav_bytes(data)
    except DecodeError as exc:
        raise DecodeError(str(exc), source=str(file_path)) from exc


def decode_wav_bytes(data: bytes) -> DecodedAudio:
    if not data:
        raise DecodeError("empty audio data")
    try:
        with wave.open(io.BytesIO(data), "rb") as wav:
            channels = wav.getnchannels()
            sample_width = wav.getsampwidth()
            sample_rate = wav.getframerate()
            frame_count = wav.getnframes()
            raw = wav.readframes(frame_count)
    except (wave.Error, EOFError) as exc:
        raise DecodeError(f"unsupported or corrupt wav data ({exc})") from exc

    if channels <= 0:
        raise DecodeError("invalid channel count in wav data")
    if sample_rate <= 0:
        raise DecodeError("invalid sample rate in wav data")
    if sample_width not in {1, 2, 3, 4}:
        raise DecodeError(f"unsupported sample width: {sample_width}")

    return DecodedAudio(
        sample_rate=sample_rate,
        channels=channels,
        samples=_decode_channels(raw, channels, sample_width),
    )


def _decode_channels(raw: bytes, channels: int, sample_width: int) -> list[list[float]]:
    samples: list[list[float]] = [[] for _ in range(channels)]
    frame_size = channels * sample_width
    for frame_start in range(0, len(raw), frame_size):
        frame = raw[frame_start : frame_start + frame_size]
        if len(frame) < frame_size:
            break
        for channel in range(channels):
            offset = channel * sample_width
            samples[channel].append(decode_sample(frame[offset : offset + sample_width], sample_width))
    return samples


def decode_sample(chunk: bytes, sample_width: int) -> float:
    if sample_width == 1:
        return (chunk[0] - 128) / 128.0
    if sample_width == 2:
        value = int.from_bytes(chunk, "little", signed=True)
        return value / 32768.0
    if sample_width == 3:
        sign = b"\xff" if chunk[2] & 0x80 else b"\x00"
        value = int.from_bytes(chunk + sign, "little", signed=True)
        return value / 8388608.0
    value = int.from_bytes(chunk, "little", signed=True)
    return value / 2147483648.0
