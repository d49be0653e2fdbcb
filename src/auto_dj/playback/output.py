"""Capability boundary between the scheduler and whatever renders audio."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from auto_dj.playback.models import ScheduledSegment


class OutputGraph(Protocol):
    """Renders scheduled segments at their absolute start times.

    Envelopes are applied against each segment's own timeline. Cancelling must
    silence in-flight segments immediately rather than let their fades finish.
    """

    def schedule(self, segments: Sequence[ScheduledSegment]) -> None: ...

    def cancel_all(self) -> None: ...

    def set_master_gain(self, gain: float, ramp_sec: float = 0.05) -> None: ...
