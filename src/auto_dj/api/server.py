"""HTTP control endpoints for the timeline player."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from auto_dj.api.schemas import (
    LoadFailureItem,
    LoadRequest,
    LoadResponse,
    MoveRequest,
    MoveResponse,
    PlayRequest,
    SeekRequest,
    SleepPresetItem,
    SleepPresetsResponse,
    SleepRequest,
    SleepResponse,
    TrackItem,
    TrackListResponse,
    TransportResponse,
    VolumeRequest,
    VolumeResponse,
)
from auto_dj.config import PlayerConfig
from auto_dj.logging_config import configure_logging
from auto_dj.playback.errors import TrackInUseError, TrackNotFoundError
from auto_dj.service import PlaybackService


def create_app(playback_service: PlaybackService | None = None) -> FastAPI:
    app = FastAPI(title="auto-dj API", version="0.1.0")
    if playback_service is None:
        config = PlayerConfig.from_env()
        configure_logging(config.log_level, config.log_format)
        playback_service = PlaybackService(config)
    service = playback_service

    def transport_response(accepted: bool = True) -> TransportResponse:
        status = service.status()
        return TransportResponse(
            state=status.state.value,
            position_sec=status.position,
            total_duration_sec=status.total_duration,
            current_track_index=status.current_track_index,
            current_track_id=status.current_track_id,
            volume=status.volume,
            crossfade_sec=status.crossfade_sec,
            sleep_remaining_sec=status.sleep_remaining_sec,
            accepted=accepted,
        )

    @app.get("/")
    def root() -> dict[str, str]:
        return {
            "service": "auto-dj API",
            "status": "ok",
            "docs": "/docs",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon() -> Response:
        return Response(status_code=204)

    @app.get("/v1/tracks", response_model=TrackListResponse)
    def list_tracks() -> TrackListResponse:
        tracks = service.tracks()
        return TrackListResponse(
            tracks=[
                TrackItem(track_id=track.track_id, name=track.name, duration_sec=track.duration_sec, index=index)
                for index, track in enumerate(tracks)
            ],
            total_duration_sec=service.total_duration(),
        )

    @app.post("/v1/tracks/load", response_model=LoadResponse)
    def load_tracks(payload: LoadRequest) -> LoadResponse:
        report = service.load_files(payload.paths)
        return LoadResponse(
            loaded=[
                TrackItem(
                    track_id=track.track_id,
                    name=track.name,
                    duration_sec=track.duration_sec,
                    index=service.catalog.index_of(track.track_id),
                )
                for track in report.tracks
            ],
            failures=[LoadFailureItem(source=item.source, reason=item.reason) for item in report.failures],
        )

    @app.delete("/v1/tracks/{track_id}", status_code=204)
    def delete_track(track_id: str) -> Response:
        try:
            service.remove_track(track_id)
        except TrackInUseError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except TrackNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return Response(status_code=204)

    @app.post("/v1/tracks/{track_id}/move", response_model=MoveResponse)
    def move_track(track_id: str, payload: MoveRequest) -> MoveResponse:
        if (payload.to_index is None) == (payload.direction is None):
            raise HTTPException(status_code=400, detail="Provide exactly one of 'to_index' or 'direction'")
        try:
            if payload.direction == "up":
                moved = service.move_track_up(track_id)
            elif payload.direction == "down":
                moved = service.move_track_down(track_id)
            else:
                service.move_track(track_id, payload.to_index)
                moved = True
            index = service.catalog.index_of(track_id)
        except TrackNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return MoveResponse(moved=moved, index=index)

    @app.get("/v1/transport", response_model=TransportResponse)
    def get_transport() -> TransportResponse:
        return transport_response()

    @app.post("/v1/transport/play", response_model=TransportResponse)
    def play(payload: PlayRequest | None = None) -> TransportResponse:
        position = payload.position_sec if payload is not None else None
        return transport_response(service.play(position))

    @app.post("/v1/transport/pause", response_model=TransportResponse)
    def pause() -> TransportResponse:
        return transport_response(service.pause())

    @app.post("/v1/transport/resume", response_model=TransportResponse)
    def resume() -> TransportResponse:
        return transport_response(service.resume())

    @app.post("/v1/transport/stop", response_model=TransportResponse)
    def stop() -> TransportResponse:
        service.stop()
        return transport_response()

    @app.post("/v1/transport/seek", response_model=TransportResponse)
    def seek(payload: SeekRequest) -> TransportResponse:
        service.seek(payload.position_sec)
        return transport_response()

    @app.put("/v1/volume", response_model=VolumeResponse)
    def set_volume(payload: VolumeRequest) -> VolumeResponse:
        return VolumeResponse(volume=service.set_volume(payload.volume))

    @app.get("/v1/sleep/presets", response_model=SleepPresetsResponse)
    def sleep_presets() -> SleepPresetsResponse:
        return SleepPresetsResponse(
            presets=[
                SleepPresetItem(label=preset.label, duration_sec=preset.duration_sec)
                for preset in service.sleep_presets()
            ]
        )

    @app.post("/v1/sleep", response_model=SleepResponse)
    def arm_sleep(payload: SleepRequest) -> SleepResponse:
        if not service.arm_sleep(payload.duration_sec):
            raise HTTPException(status_code=409, detail="Sleep timer can only be set while playing")
        return SleepResponse(armed=True, remaining_sec=service.sleep_timer.remaining())

    @app.delete("/v1/sleep", response_model=SleepResponse)
    def disarm_sleep() -> SleepResponse:
        service.disarm_sleep()
        return SleepResponse(armed=False)

    return app


app = create_app()
