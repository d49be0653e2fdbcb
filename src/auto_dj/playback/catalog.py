"""Ordered track catalog; order is playback order."""

from __future__ import annotations

import math
import threading
from collections.abc import Iterable

from auto_dj.playback.errors import DuplicateTrackError, TrackNotFoundError
from auto_dj.playback.models import Track


class TrackCatalog:
    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._lock = threading.RLock()
        self._tracks: list[Track] = []
        for track in tracks:
            self.append(track)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)

    def snapshot(self) -> tuple[Track, ...]:
        with self._lock:
            return tuple(self._tracks)

    def total_duration(self) -> float:
        with self._lock:
            return math.fsum(track.duration_sec for track in self._tracks)

    def get(self, track_id: str) -> Track:
        with self._lock:
            return self._tracks[self._require_index(track_id)]

    def index_of(self, track_id: str) -> int:
        with self._lock:
            return self._require_index(track_id)

    def contains(self, track_id: str) -> bool:
        with self._lock:
            return any(track.track_id == track_id for track in self._tracks)

    def append(self, track: Track) -> Track:
        with self._lock:
            self._ensure_unique(track.track_id)
            self._tracks.append(track)
            return track

    def extend(self, tracks: Iterable[Track]) -> list[Track]:
        incoming = list(tracks)
        with self._lock:
            seen: set[str] = set()
            for track in incoming:
                self._ensure_unique(track.track_id)
                if track.track_id in seen:
                    raise DuplicateTrackError(track.track_id)
                seen.add(track.track_id)
            self._tracks.extend(incoming)
        return incoming

    def insert(self, index: int, track: Track) -> Track:
        with self._lock:
            self._ensure_unique(track.track_id)
            bounded = min(max(index, 0), len(self._tracks))
            self._tracks.insert(bounded, track)
            return track

    def remove(self, track_id: str) -> Track:
        with self._lock:
            return self._tracks.pop(self._require_index(track_id))

    def move(self, track_id: str, to_index: int) -> None:
        with self._lock:
            track = self._tracks.pop(self._require_index(track_id))
            bounded = min(max(to_index, 0), len(self._tracks))
            self._tracks.insert(bounded, track)

    def move_up(self, track_id: str) -> bool:
        with self._lock:
            index = self._require_index(track_id)
            if index == 0:
                return False
            self._swap(index - 1, index)
            return True

    def move_down(self, track_id: str) -> bool:
        with self._lock:
            index = self._require_index(track_id)
            if index == len(self._tracks) - 1:
                return False
            self._swap(index, index + 1)
            return True

    def reorder(self, track_ids: list[str]) -> None:
        with self._lock:
            by_id = {track.track_id: track for track in self._tracks}
            if len(track_ids) != len(by_id) or set(track_ids) != set(by_id):
                raise ValueError("reorder requires every catalog track id exactly once")
            self._tracks = [by_id[track_id] for track_id in track_ids]

    def clear(self) -> None:
        with self._lock:
            self._tracks.clear()

    def _swap(self, left: int, right: int) -> None:
        self._tracks[left], self._tracks[right] = self._tracks[right], self._tracks[left]

    def _require_index(self, track_id: str) -> int:
        for index, track in enumerate(self._tracks):
            if track.track_id == track_id:
                return index
        raise TrackNotFoundError(track_id)

    def _ensure_unique(self, track_id: str) -> None:
        if any(track.track_id == track_id for track in self._tracks):
            raise DuplicateTrackError(track_id)
