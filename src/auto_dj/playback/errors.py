"""Playback error taxonomy."""

from __future__ import annotations


class PlaybackError(RuntimeError):
    """Base class for recoverable playback failures."""


class TrackInUseError(PlaybackError):
    """Raised when deleting the track that is currently playing."""

    def __init__(self, track_id: str) -> None:
        super().__init__(f"Track '{track_id}' is currently playing")
        self.track_id = track_id


class TrackNotFoundError(PlaybackError, KeyError):
    def __init__(self, track_id: str) -> None:
        super().__init__(f"Track '{track_id}' not found")
        self.track_id = track_id

    def __str__(self) -> str:
        return str(self.args[0])


class DuplicateTrackError(PlaybackError, ValueError):
    def __init__(self, track_id: str) -> None:
        super().__init__(f"Track '{track_id}' is already in the catalog")
        self.track_id = track_id


class OutputGraphError(PlaybackError):
    """Raised when the output collaborator rejects a schedule or cancel call."""
