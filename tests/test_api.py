from __future__ import annotations

from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from audio_meta.api import create_app
from audio_meta.application.decoder import DecoderError
from audio_meta.domain.models import RawFormatRecord
from audio_meta.utils.config import GatewaySettings
from conftest import RecordingPublisher

RESPONSE_KEYS = {
    "filename",
    "mimeType",
    "sizeBytes",
    "format",
    "durationSeconds",
    "bitrateKbps",
    "sampleRateHz",
    "channels",
    "encoding",
    "isLossless",
    "timestamp",
    "analysisMethod",
}


class ScriptedDecoder:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.calls = 0

    def decode(self, path, *, filename=None, mime_type=None):
        self.calls += 1
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


def unreachable_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    return httpx.MockTransport(handler)


def make_client(settings: GatewaySettings, **kwargs) -> TestClient:
    kwargs.setdefault("event_publisher", RecordingPublisher())
    return TestClient(create_app(settings, **kwargs))


def assert_cors(response: httpx.Response) -> None:
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-credentials"] == "true"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert "Content-Type" in response.headers["access-control-allow-headers"]


def test_preflight_returns_empty_ok(settings: GatewaySettings) -> None:
    response = make_client(settings).options("/api/analyze")

    assert response.status_code == 200
    assert response.content == b""
    assert_cors(response)


def test_non_post_method_is_rejected(settings: GatewaySettings) -> None:
    response = make_client(settings).get("/api/analyze")

    assert response.status_code == 405
    assert response.headers["allow"] == "OPTIONS, POST"
    body = response.json()
    assert body["error"] == "Method Not Allowed"
    assert body["message"] == "Method GET is not allowed. Use POST."
    assert_cors(response)


def test_unsupported_content_type(settings: GatewaySettings) -> None:
    response = make_client(settings).post(
        "/api/analyze", content=b"hello", headers={"Content-Type": "text/plain"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Unsupported Content-Type"
    assert body["receivedContentType"] == "text/plain"
    assert_cors(response)


def test_url_encoded_form_is_unsupported(settings: GatewaySettings) -> None:
    response = make_client(settings).post("/api/analyze", data={"fileUrl": "https://example.com/a.mp3"})

    assert response.status_code == 400
    assert response.json()["code"] == "unsupported_content_type"


def test_malformed_json_is_rejected(settings: GatewaySettings) -> None:
    response = make_client(settings).post(
        "/api/analyze", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "malformed_body"


def test_json_without_url_lists_received_fields(settings: GatewaySettings) -> None:
    response = make_client(settings).post("/api/analyze", json={"name": "take.mp3"})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Missing fileUrl in JSON body"
    assert body["receivedFields"] == ["name"]


def test_unreachable_url_is_server_error_and_leaves_no_files(settings: GatewaySettings, scratch_dir: Path) -> None:
    client = make_client(settings, transport=unreachable_transport())

    response = client.post("/api/analyze", json={"fileUrl": "http://bad.invalid/x.mp3"})

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "remote_fetch_failed"
    assert body["url"] == "http://bad.invalid/x.mp3"
    assert "ConnectError" in body["details"]
    assert list(scratch_dir.iterdir()) == []
    assert_cors(response)


def test_multipart_url_field_wins_over_attached_file(settings: GatewaySettings, wav_bytes: bytes) -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=wav_bytes, headers={"content-type": "audio/wav"})

    decoder = ScriptedDecoder(RawFormatRecord(container="WAV", lossless=True))
    client = make_client(settings, decoder=decoder, transport=httpx.MockTransport(handler))

    response = client.post(
        "/api/analyze",
        data={"fileUrl": "https://cdn.example.com/remote.wav"},
        files={"file": ("local.wav", wav_bytes, "audio/wav")},
    )

    assert response.status_code == 200
    assert requested == ["https://cdn.example.com/remote.wav"]
    body = response.json()
    assert body["analysisMethod"] == "remote-download"
    assert body["filename"] == "remote.wav"
    assert decoder.calls == 1


def test_multipart_without_source_lists_what_was_received(settings: GatewaySettings) -> None:
    response = make_client(settings).post(
        "/api/analyze",
        data={"note": "hello"},
        files={"attachment": ("empty.wav", b"", "audio/wav")},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "missing_source"
    assert body["receivedFields"] == ["note"]
    assert body["receivedFiles"] == ["attachment"]


def test_oversized_upload_is_rejected_before_decoding(scratch_dir: Path, wav_bytes: bytes) -> None:
    settings = GatewaySettings(temp_dir=scratch_dir, max_upload_bytes=64)
    decoder = ScriptedDecoder(RawFormatRecord(container="WAV"))

    response = make_client(settings, decoder=decoder).post(
        "/api/analyze", files={"file": ("big.wav", wav_bytes, "audio/wav")}
    )

    assert response.status_code == 413
    body = response.json()
    assert body["limitBytes"] == 64
    assert "fileUrl" in body["message"]
    assert decoder.calls == 0
    assert list(scratch_dir.iterdir()) == []


def test_wav_upload_is_analyzed(settings: GatewaySettings, scratch_dir: Path, wav_bytes: bytes) -> None:
    publisher = RecordingPublisher()
    client = make_client(settings, event_publisher=publisher)

    response = client.post(
        "/api/analyze",
        files={"audio": ("tone.wav", wav_bytes, "audio/wav")},
        headers={"X-Correlation-Id": "req-42"},
    )

    assert response.status_code == 200
    assert response.headers["x-correlation-id"] == "req-42"
    assert_cors(response)
    body = response.json()
    assert set(body) == RESPONSE_KEYS
    assert body["filename"] == "tone.wav"
    assert body["mimeType"] == "audio/wav"
    assert body["sizeBytes"] == len(wav_bytes)
    assert body["format"] == "WAV"
    assert body["isLossless"] is True
    assert body["sampleRateHz"] == 44_100
    assert body["analysisMethod"] == "direct-upload"
    assert publisher.names[0] == "SourceResolved"
    assert publisher.names[-1] == "MetadataExtracted"
    assert list(scratch_dir.iterdir()) == []


def test_simulate_query_returns_fixed_record(settings: GatewaySettings) -> None:
    decoder = ScriptedDecoder(RawFormatRecord(container="WAV"))
    client = make_client(settings, decoder=decoder, transport=unreachable_transport())

    response = client.post("/api/analyze?simulate=true", json={"fileUrl": "https://example.com/demo.ogg"})

    assert response.status_code == 200
    body = response.json()
    assert body["analysisMethod"] == "simulated"
    assert body["format"] == "OGG"
    assert body["durationSeconds"] == 245.5
    assert body["bitrateKbps"] == 320
    assert decoder.calls == 0


def test_demo_mode_simulates_every_request(scratch_dir: Path, wav_bytes: bytes) -> None:
    settings = GatewaySettings(temp_dir=scratch_dir, demo_mode=True)

    response = make_client(settings).post("/api/analyze", files={"file": ("x.mp3", wav_bytes, "audio/mpeg")})

    assert response.status_code == 200
    assert response.json()["analysisMethod"] == "simulated"
    assert response.json()["sizeBytes"] == len(wav_bytes)


def test_decode_failure_passes_details_through(settings: GatewaySettings, scratch_dir: Path, wav_bytes: bytes) -> None:
    decoder = ScriptedDecoder(DecoderError("Error opening 'x': Format not recognised."))

    response = make_client(settings, decoder=decoder).post(
        "/api/analyze", files={"file": ("x.wav", wav_bytes, "audio/wav")}
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to analyze audio file"
    assert body["details"] == "Error opening 'x': Format not recognised."
    assert list(scratch_dir.iterdir()) == []


def test_unexpected_failure_is_internal_fault(settings: GatewaySettings, scratch_dir: Path, wav_bytes: bytes) -> None:
    decoder = ScriptedDecoder(RuntimeError("boom"))

    response = make_client(settings, decoder=decoder).post(
        "/api/analyze", files={"file": ("x.wav", wav_bytes, "audio/wav")}
    )

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "internal_fault"
    assert "RuntimeError" in body["message"]
    assert list(scratch_dir.iterdir()) == []


def test_health_carries_cors_headers(settings: GatewaySettings) -> None:
    response = make_client(settings).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert_cors(response)


def test_invalid_simulate_flag_uses_error_body(settings: GatewaySettings) -> None:
    client = make_client(settings, transport=unreachable_transport())

    response = client.post(
        "/api/analyze?simulate=maybe",
        json={"fileUrl": "https://example.com/demo.mp3"},
        headers={"X-Correlation-Id": "req-7"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Malformed request body"
    assert body["code"] == "malformed_body"
    assert "simulate" in body["message"]
    assert "detail" not in body
    assert response.headers["x-correlation-id"] == "req-7"
    assert_cors(response)


def test_unusable_temp_dir_is_internal_fault(tmp_path: Path, wav_bytes: bytes) -> None:
    settings = GatewaySettings(temp_dir=tmp_path / "does-not-exist")

    response = make_client(settings).post("/api/analyze", files={"file": ("x.wav", wav_bytes, "audio/wav")})

    assert response.status_code == 500
    assert response.json()["code"] == "internal_fault"
