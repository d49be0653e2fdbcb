"""Batch loading of audio files into catalog tracks."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from auto_dj.audio.decoder import DecodeError, DecodedAudio, decode_file, decode_wav_bytes
from auto_dj.playback.models import Track

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LoadFailure:
    source: str
    reason: str


@dataclass(slots=True)
class LoadReport:
    tracks: list[Track] = field(default_factory=list)
    failures: list[LoadFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class TrackLoader:
    """Decodes files concurrently; one bad file never aborts the batch."""

    def __init__(self, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max(max_workers, 1), thread_name_prefix="track-decode")

    def load_paths(self, paths: list[str | Path]) -> LoadReport:
        jobs: list[tuple[Path, Future[DecodedAudio]]] = [
            (Path(path), self._executor.submit(decode_file, path)) for path in paths
        ]
        report = LoadReport()
        for path, job in jobs:
            try:
                decoded = job.result()
            except DecodeError as exc:
                logger.warning("skipping %s: %s", path, exc)
                report.failures.append(LoadFailure(source=str(path), reason=str(exc)))
                continue
            report.tracks.append(Track.from_decoded(name=path.name, decoded=decoded))
        return report

    def load_bytes(self, name: str, data: bytes) -> Track:
        try:
            decoded = decode_wav_bytes(data)
        except DecodeError as exc:
            raise DecodeError(str(exc), source=name) from exc
        return Track.from_decoded(name=name, decoded=decoded)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
