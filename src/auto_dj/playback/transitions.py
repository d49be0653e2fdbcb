"""Pure transport transitions: ``(snapshot, inputs) -> snapshot``.

Nothing here talks to the output graph or the catalog; the Transport applies
these and performs the side effects around them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from auto_dj.playback.models import TransportState
from auto_dj.playback.timeline import clamp_position


@dataclass(frozen=True, slots=True)
class TransportSnapshot:
    state: TransportState = TransportState.STOPPED
    anchor_position: float = 0.0
    # Only set while PLAYING.
    anchor_clock: float | None = None

    def position_at(self, now: float, total: float) -> float:
        if self.state == TransportState.PLAYING and self.anchor_clock is not None:
            return clamp_position(self.anchor_position + (now - self.anchor_clock), total)
        return clamp_position(self.anchor_position, total)


def resolve_play_target(snapshot: TransportSnapshot, requested: float | None, now: float, total: float) -> float:
    base = snapshot.position_at(now, total) if requested is None else requested
    target = clamp_position(base, total)
    if snapshot.state == TransportState.STOPPED and target >= total:
        return 0.0
    return target


def start_playing(position: float, now: float) -> TransportSnapshot:
    return TransportSnapshot(state=TransportState.PLAYING, anchor_position=position, anchor_clock=now)


def pause(snapshot: TransportSnapshot, now: float, total: float) -> TransportSnapshot:
    if snapshot.state != TransportState.PLAYING:
        return snapshot
    return TransportSnapshot(state=TransportState.PAUSED, anchor_position=snapshot.position_at(now, total))


def stop(_snapshot: TransportSnapshot) -> TransportSnapshot:
    return TransportSnapshot()


def finish(total: float) -> TransportSnapshot:
    return TransportSnapshot(state=TransportState.STOPPED, anchor_position=max(total, 0.0))


def halt_at(position: float) -> TransportSnapshot:
    return TransportSnapshot(state=TransportState.STOPPED, anchor_position=max(position, 0.0))


def seek_frozen(snapshot: TransportSnapshot, position: float, total: float) -> TransportSnapshot:
    if snapshot.state == TransportState.PLAYING:
        raise ValueError("seek_frozen applies to paused or stopped transports only")
    return replace(snapshot, anchor_position=clamp_position(position, total))


def retarget(snapshot: TransportSnapshot, old_position: float, new_position: float) -> TransportSnapshot:
    """Move the current position by the amount a catalog edit displaced it."""
    if snapshot.state == TransportState.PLAYING:
        return replace(snapshot, anchor_position=snapshot.anchor_position + (new_position - old_position))
    return replace(snapshot, anchor_position=new_position)


def is_finished(snapshot: TransportSnapshot, now: float, total: float) -> bool:
    if snapshot.state != TransportState.PLAYING:
        return False
    return snapshot.position_at(now, total) >= total
