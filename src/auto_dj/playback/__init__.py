"""Timeline playback scheduler: catalog, planner, transport and timers."""

from auto_dj.playback.catalog import TrackCatalog
from auto_dj.playback.clock import Clock, ManualClock, MonotonicClock
from auto_dj.playback.errors import (
    DuplicateTrackError,
    OutputGraphError,
    PlaybackError,
    TrackInUseError,
    TrackNotFoundError,
)
from auto_dj.playback.models import (
    LocatedTrack,
    PlaybackSegment,
    ScheduledSegment,
    SleepDeadline,
    Track,
    TransportEvent,
    TransportState,
)
from auto_dj.playback.output import OutputGraph
from auto_dj.playback.planner import DEFAULT_ATTACK_SEC, DEFAULT_CROSSFADE_SEC, plan_segments
from auto_dj.playback.poller import PositionPoller, PositionUpdate
from auto_dj.playback.sleep_timer import SLEEP_PRESETS, SleepPreset, SleepTimer, available_sleep_presets
from auto_dj.playback.tasks import ScheduledTask, TaskScheduler, ThreadingTaskScheduler, VirtualTaskScheduler
from auto_dj.playback.timeline import locate, retarget_position, total_duration, track_start
from auto_dj.playback.transport import DEFAULT_SCHEDULE_MARGIN_SEC, Transport

__all__ = [
    "Clock",
    "DEFAULT_ATTACK_SEC",
    "DEFAULT_CROSSFADE_SEC",
    "DEFAULT_SCHEDULE_MARGIN_SEC",
    "DuplicateTrackError",
    "LocatedTrack",
    "ManualClock",
    "MonotonicClock",
    "OutputGraph",
    "OutputGraphError",
    "PlaybackError",
    "PlaybackSegment",
    "PositionPoller",
    "PositionUpdate",
    "SLEEP_PRESETS",
    "ScheduledSegment",
    "ScheduledTask",
    "SleepDeadline",
    "SleepPreset",
    "SleepTimer",
    "TaskScheduler",
    "ThreadingTaskScheduler",
    "Track",
    "TrackCatalog",
    "TrackInUseError",
    "TrackNotFoundError",
    "Transport",
    "TransportEvent",
    "TransportState",
    "VirtualTaskScheduler",
    "available_sleep_presets",
    "locate",
    "plan_segments",
    "retarget_position",
    "total_duration",
    "track_start",
]
