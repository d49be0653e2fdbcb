"""Player service wiring catalog, transport, timers, loader and output graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from auto_dj.audio.loader import LoadReport, TrackLoader
from auto_dj.audio.render import OfflineMixRenderer
from auto_dj.config import PlayerConfig
from auto_dj.playback.catalog import TrackCatalog
from auto_dj.playback.clock import Clock, MonotonicClock
from auto_dj.playback.models import LocatedTrack, Track, TransportState
from auto_dj.playback.output import OutputGraph
from auto_dj.playback.poller import PositionListener, PositionPoller
from auto_dj.playback.sleep_timer import SleepPreset, SleepTimer, available_sleep_presets
from auto_dj.playback.tasks import TaskScheduler, ThreadingTaskScheduler
from auto_dj.playback.transport import Transport

logger = logging.getLogger(__name__)

VOLUME_RAMP_SEC = 0.05


@dataclass(slots=True)
class PlayerStatus:
    state: TransportState
    position: float
    total_duration: float
    current_track_index: int | None
    current_track_id: str | None
    volume: float
    crossfade_sec: float
    sleep_remaining_sec: float | None


class PlaybackService:
    def __init__(
        self,
        config: PlayerConfig | None = None,
        scheduler: TaskScheduler | None = None,
        output: OutputGraph | None = None,
        loader: TrackLoader | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or PlayerConfig.from_env()
        if scheduler is None:
            scheduler = ThreadingTaskScheduler(clock or MonotonicClock())
        # Timers and the transport anchor must read the same time source.
        self._clock: Clock = clock or scheduler
        self._scheduler = scheduler
        self._output = output or OfflineMixRenderer(self._clock, sample_rate=self._config.sample_rate)
        self._loader = loader or TrackLoader(max_workers=self._config.load_workers)
        self._catalog = TrackCatalog()
        self._transport = Transport(
            catalog=self._catalog,
            output=self._output,
            clock=self._clock,
            crossfade_sec=self._config.crossfade_sec,
            attack_sec=self._config.attack_sec,
            schedule_margin_sec=self._config.schedule_margin_sec,
        )
        self._sleep_timer = SleepTimer(self._transport, scheduler)
        self._poller = PositionPoller(self._transport, scheduler, interval_sec=self._config.poll_interval_sec)
        self._volume = 1.0

    @property
    def config(self) -> PlayerConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def catalog(self) -> TrackCatalog:
        return self._catalog

    @property
    def output(self) -> OutputGraph:
        return self._output

    @property
    def sleep_timer(self) -> SleepTimer:
        return self._sleep_timer

    @property
    def poller(self) -> PositionPoller:
        return self._poller

    def load_files(self, paths: list[str | Path]) -> LoadReport:
        report = self._loader.load_paths(paths)
        if report.tracks:
            self._transport.edit_catalog(lambda catalog: catalog.extend(report.tracks))
        logger.info("loaded %d track(s), %d failure(s)", len(report.tracks), len(report.failures))
        return report

    def load_bytes(self, name: str, data: bytes) -> Track:
        return self.add_track(self._loader.load_bytes(name, data))

    def add_track(self, track: Track, index: int | None = None) -> Track:
        if index is None:
            return self._transport.edit_catalog(lambda catalog: catalog.append(track))
        return self._transport.edit_catalog(lambda catalog: catalog.insert(index, track))

    def remove_track(self, track_id: str) -> Track:
        removed = self._transport.edit_catalog(lambda catalog: catalog.remove(track_id), protect_track_id=track_id)
        logger.info("removed track %s", removed.name, extra={"track_id": track_id})
        return removed

    def move_track(self, track_id: str, to_index: int) -> None:
        self._transport.edit_catalog(lambda catalog: catalog.move(track_id, to_index))

    def move_track_up(self, track_id: str) -> bool:
        return self._transport.edit_catalog(lambda catalog: catalog.move_up(track_id))

    def move_track_down(self, track_id: str) -> bool:
        return self._transport.edit_catalog(lambda catalog: catalog.move_down(track_id))

    def tracks(self) -> list[Track]:
        return list(self._catalog.snapshot())

    def play(self, position: float | None = None) -> bool:
        return self._transport.play(position)

    def resume(self) -> bool:
        return self._transport.resume()

    def pause(self) -> bool:
        return self._transport.pause()

    def stop(self) -> None:
        self._transport.stop()

    def seek(self, position: float) -> None:
        self._transport.seek(position)

    def position(self) -> float:
        return self._transport.current_position()

    def total_duration(self) -> float:
        return self._transport.total_duration()

    def current_track(self) -> LocatedTrack | None:
        return self._transport.current_track()

    def set_crossfade(self, seconds: float) -> None:
        self._transport.crossfade_sec = seconds

    def set_volume(self, volume: float) -> float:
        self._volume = min(max(volume, 0.0), 1.0)
        self._output.set_master_gain(self._volume, VOLUME_RAMP_SEC)
        return self._volume

    def arm_sleep(self, duration_sec: float) -> bool:
        return self._sleep_timer.arm(duration_sec)

    def disarm_sleep(self) -> bool:
        return self._sleep_timer.disarm()

    def sleep_presets(self) -> list[SleepPreset]:
        return available_sleep_presets(self.total_duration())

    def add_position_listener(self, listener: PositionListener) -> None:
        self._poller.add_listener(listener)

    def status(self) -> PlayerStatus:
        located = self._transport.current_track()
        return PlayerStatus(
            state=self._transport.state,
            position=self._transport.current_position(),
            total_duration=self._transport.total_duration(),
            current_track_index=located.index if located else None,
            current_track_id=located.track_id if located else None,
            volume=self._volume,
            crossfade_sec=self._transport.crossfade_sec,
            sleep_remaining_sec=self._sleep_timer.remaining(),
        )

    def close(self) -> None:
        self._transport.stop()
        self._loader.shutdown()
