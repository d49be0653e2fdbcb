import math
import wave
from pathlib import Path

from fastapi.testclient import TestClient

from auto_dj.api.server import create_app
from auto_dj.config import PlayerConfig
from auto_dj.playback.models import Track
from auto_dj.playback.tasks import VirtualTaskScheduler
from auto_dj.service import PlaybackService


def _write_test_wav(path: Path, sample_rate: int = 8000, duration_sec: float = 0.2) -> None:
    num_frames = int(sample_rate * duration_sec)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(2)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        frames = bytearray()
        for idx in range(num_frames):
            value = int(9000 * math.sin(2 * math.pi * 330 * idx / sample_rate))
            frames += value.to_bytes(2, "little", signed=True) * 2
        wav.writeframes(bytes(frames))


def _client(*durations: float) -> tuple[TestClient, PlaybackService, VirtualTaskScheduler]:
    scheduler = VirtualTaskScheduler()
    service = PlaybackService(PlayerConfig(), scheduler=scheduler)
    for name, duration in zip("ABCDEF", durations):
        service.add_track(Track(track_id=name, name=f"{name}.wav", duration_sec=duration))
    return TestClient(create_app(service)), service, scheduler


def test_root_and_favicon_endpoints() -> None:
    client, _, _ = _client()

    root_response = client.get("/")
    assert root_response.status_code == 200
    assert root_response.json()["status"] == "ok"
    assert root_response.json()["docs"] == "/docs"

    favicon_response = client.get("/favicon.ico")
    assert favicon_response.status_code == 204


def test_load_and_list_tracks(tmp_path: Path) -> None:
    client, _, _ = _client()
    good = tmp_path / "good.wav"
    _write_test_wav(good)

    response = client.post("/v1/tracks/load", json={"paths": [str(good), str(tmp_path / "missing.wav")]})
    body = response.json()
    assert response.status_code == 200
    assert [item["name"] for item in body["loaded"]] == ["good.wav"]
    assert body["loaded"][0]["index"] == 0
    assert len(body["failures"]) == 1

    listing = client.get("/v1/tracks").json()
    assert [item["name"] for item in listing["tracks"]] == ["good.wav"]
    assert abs(listing["total_duration_sec"] - 0.2) < 1e-6


def test_load_rejects_empty_path_list() -> None:
    client, _, _ = _client()
    assert client.post("/v1/tracks/load", json={"paths": []}).status_code == 422


def test_transport_endpoints_drive_state() -> None:
    client, _, scheduler = _client(10.0, 8.0, 5.0)

    body = client.post("/v1/transport/play", json={"position_sec": 0.0}).json()
    assert body["state"] == "playing"
    assert body["accepted"] is True
    assert body["current_track_id"] == "A"

    scheduler.advance(3.0)
    body = client.post("/v1/transport/pause").json()
    assert body["state"] == "paused"
    assert abs(body["position_sec"] - 3.0) < 1e-6

    body = client.post("/v1/transport/seek", json={"position_sec": 12.0}).json()
    assert body["state"] == "paused"
    assert body["current_track_index"] == 1

    assert client.post("/v1/transport/resume").json()["state"] == "playing"
    body = client.post("/v1/transport/stop").json()
    assert body["state"] == "stopped"
    assert body["position_sec"] == 0.0

    assert client.get("/v1/transport").json()["total_duration_sec"] == 23.0


def test_play_without_body_and_on_empty_catalog() -> None:
    client, _, _ = _client()
    body = client.post("/v1/transport/play").json()
    assert body["accepted"] is False
    assert body["state"] == "stopped"


def test_seek_rejects_negative_position() -> None:
    client, _, _ = _client(10.0)
    assert client.post("/v1/transport/seek", json={"position_sec": -1.0}).status_code == 422


def test_delete_track_status_codes() -> None:
    client, _, scheduler = _client(10.0, 8.0, 5.0)
    client.post("/v1/transport/play", json={"position_sec": 20.0})
    scheduler.advance(0.5)

    assert client.delete("/v1/tracks/C").status_code == 409
    assert client.delete("/v1/tracks/B").status_code == 204
    assert client.delete("/v1/tracks/B").status_code == 404
    assert client.get("/v1/tracks").json()["total_duration_sec"] == 15.0


def test_move_track_endpoint() -> None:
    client, _, _ = _client(1.0, 2.0, 3.0)

    response = client.post("/v1/tracks/A/move", json={"direction": "down"})
    assert response.status_code == 200
    assert response.json() == {"moved": True, "index": 1}

    response = client.post("/v1/tracks/C/move", json={"to_index": 0})
    assert response.json() == {"moved": True, "index": 0}

    assert client.post("/v1/tracks/C/move", json={"direction": "up"}).json()["moved"] is False
    assert client.post("/v1/tracks/C/move", json={}).status_code == 400
    assert client.post("/v1/tracks/C/move", json={"to_index": 1, "direction": "up"}).status_code == 400
    assert client.post("/v1/tracks/Z/move", json={"direction": "up"}).status_code == 404


def test_volume_endpoint_validates_range() -> None:
    client, _, _ = _client()
    assert client.put("/v1/volume", json={"volume": 0.3}).json() == {"volume": 0.3}
    assert client.put("/v1/volume", json={"volume": 1.3}).status_code == 422
    assert client.get("/v1/transport").json()["volume"] == 0.3


def test_sleep_endpoints() -> None:
    client, _, scheduler = _client(1800.0)

    presets = client.get("/v1/sleep/presets").json()["presets"]
    assert [item["duration_sec"] for item in presets] == [600.0, 1200.0]

    assert client.post("/v1/sleep", json={"duration_sec": 600}).status_code == 409

    client.post("/v1/transport/play")
    response = client.post("/v1/sleep", json={"duration_sec": 5})
    assert response.status_code == 200
    assert response.json()["armed"] is True
    assert response.json()["remaining_sec"] == 5.0
    assert client.get("/v1/transport").json()["sleep_remaining_sec"] == 5.0

    assert client.delete("/v1/sleep").json() == {"armed": False, "remaining_sec": None}
    scheduler.advance(10.0)
    assert client.get("/v1/transport").json()["state"] == "playing"

    assert client.post("/v1/sleep", json={"duration_sec": 0}).status_code == 422
