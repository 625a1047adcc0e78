import pytest
from fastapi.testclient import TestClient

import api_server
from conftest import FakeLlmClient, FakeResponse, FakeSocket, feedback_payload, results_message
from config import DialogueSettings
from dialogue import DialogueOrchestrator
from feedback import FeedbackSynthesizer
from speech_capture.deepgram import CLOSE_STREAM


def _payload(**overrides) -> dict:
    payload = {
        "transcript": "I led the payments migration.",
        "conversationHistory": [
            {
                "speaker": "interviewer",
                "message": "Tell me about yourself.",
                "timestamp": "2024-05-01T09:00:00Z",
            }
        ],
        "jobDescription": "Senior backend engineer",
        "resume": "Seven years of Python",
        "coverLetter": None,
        "apiKeys": {"deepgram": "dg-123456789012", "speechify": "sp-123456789012", "openai": "sk-123456789012"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def llm(monkeypatch, route, coach_route):
    client = FakeLlmClient()

    def _build() -> DialogueOrchestrator:
        return DialogueOrchestrator(
            route, DialogueSettings(), FeedbackSynthesizer(coach_route, client=client), client=client
        )

    monkeypatch.setattr(api_server, "_orchestrator", _build)
    return client


def test_health() -> None:
    client = TestClient(api_server.app)

    assert client.get("/health").json() == {"status": "ok"}


def test_interview_returns_next_question(llm) -> None:
    llm.replies.append("What was the riskiest part of that migration?")
    client = TestClient(api_server.app)

    response = client.post("/api/interview", json=_payload())

    assert response.status_code == 200
    assert response.json() == {
        "isComplete": False,
        "question": "What was the riskiest part of that migration?",
    }
    assert llm.calls[0]["headers"]["Authorization"] == "Bearer sk-123456789012"


def test_interview_returns_feedback_on_sentinel(llm) -> None:
    llm.replies.extend(["INTERVIEW_COMPLETE", feedback_payload()])
    client = TestClient(api_server.app)

    response = client.post("/api/interview", json=_payload())

    body = response.json()
    assert response.status_code == 200
    assert body["isComplete"] is True
    assert body["feedback"]["strengths"][0]["moment"] == "Describing the payments migration"
    assert "question" not in body


def test_credentials_field_name_is_accepted(llm) -> None:
    llm.replies.append("Next question?")
    payload = _payload()
    payload.pop("apiKeys")
    payload["credentials"] = {"speechKey": "dg", "ttsKey": "sp", "llmKey": "sk-direct-key"}
    client = TestClient(api_server.app)

    response = client.post("/api/interview", json=payload)

    assert response.status_code == 200
    assert llm.calls[0]["headers"]["Authorization"] == "Bearer sk-direct-key"


@pytest.mark.parametrize(
    "overrides",
    [
        {"transcript": ""},
        {"apiKeys": {"deepgram": "dg", "speechify": "sp", "openai": ""}},
    ],
)
def test_missing_fields_return_400(llm, overrides) -> None:
    client = TestClient(api_server.app)

    response = client.post("/api/interview", json=_payload(**overrides))

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}
    assert llm.calls == []


def test_model_failure_returns_500(llm) -> None:
    llm.replies.append(FakeResponse(401, {"error": "invalid key"}))
    client = TestClient(api_server.app)

    response = client.post("/api/interview", json=_payload())

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert "401" in body["details"]


def test_empty_model_reply_returns_500(llm) -> None:
    llm.replies.append("")
    client = TestClient(api_server.app)

    response = client.post("/api/interview", json=_payload())

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_non_post_is_rejected() -> None:
    client = TestClient(api_server.app)

    assert client.get("/api/interview").status_code == 405


def test_feedback_endpoint_returns_report(llm) -> None:
    llm.replies.append(feedback_payload())
    client = TestClient(api_server.app)
    payload = _payload()
    payload.pop("transcript")

    response = client.post("/api/interview/feedback", json=payload)

    assert response.status_code == 200
    assert response.json()["feedback"]["improvements"][0]["title"] == "Quantify impact"


def test_feedback_endpoint_falls_back_when_config_breaks(monkeypatch) -> None:
    def _broken():
        raise FileNotFoundError("app_config.json")

    monkeypatch.setattr(api_server, "_orchestrator", _broken)
    client = TestClient(api_server.app)

    response = client.post("/api/interview/feedback", json=_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["isComplete"] is True
    assert body["feedback"]["strengths"][0]["title"] == "Participated in Mock Interview"


def test_speech_stream_relays_audio_and_events(monkeypatch) -> None:
    sockets: list = []
    captured: dict = {}

    async def fake_connect(url, **kwargs):
        captured["url"] = url
        captured["headers"] = kwargs["additional_headers"]
        socket = FakeSocket([results_message("I have"), results_message("I have led teams.", is_final=True)])
        sockets.append(socket)
        return socket

    monkeypatch.setattr(api_server, "speech_connect", fake_connect)
    client = TestClient(api_server.app)

    with client.websocket_connect("/api/stt/stream") as ws:
        ws.send_json({"deepgram": "dg-relay-key"})
        first = ws.receive_json()
        partial = ws.receive_json()
        final = ws.receive_json()
        ws.send_bytes(b"\x1a\x45\xdf\xa3")
        ws.send_json({"command": "stop"})
        closing = ws.receive_json()

    assert first == {"type": "connection", "connected": True}
    assert partial == {"type": "partial", "text": "I have"}
    assert final == {"type": "final", "text": "I have led teams.", "speech_final": False}
    assert closing == {"type": "connection", "connected": False}
    assert captured["headers"] == {"Authorization": "Token dg-relay-key"}
    assert "encoding=" not in captured["url"]
    assert sockets[0].sent == [b"\x1a\x45\xdf\xa3", CLOSE_STREAM]


def test_speech_stream_requires_key() -> None:
    client = TestClient(api_server.app)

    with client.websocket_connect("/api/stt/stream") as ws:
        ws.send_json({"speechKey": ""})
        event = ws.receive_json()

    assert event == {"type": "error", "message": "Missing required fields"}


def test_speech_stream_reports_connection_failure(monkeypatch) -> None:
    async def refuse(url, **kwargs):
        raise OSError("refused")

    monkeypatch.setattr(api_server, "speech_connect", refuse)
    client = TestClient(api_server.app)

    with client.websocket_connect("/api/stt/stream") as ws:
        ws.send_json({"speechKey": "dg-relay-key"})
        event = ws.receive_json()

    assert event == {"type": "error", "message": "Failed to connect to speech recognition service"}


@pytest.mark.parametrize(
    "audio",
    [{"sampleRate": "fast"}, {"channels": "stereo"}, {"sampleRate": -16000}],
)
def test_speech_stream_rejects_bad_audio_format(monkeypatch, audio) -> None:
    async def unexpected(url, **kwargs):
        raise AssertionError("recognizer should not be contacted")

    monkeypatch.setattr(api_server, "speech_connect", unexpected)
    client = TestClient(api_server.app)

    with client.websocket_connect("/api/stt/stream") as ws:
        ws.send_json({"speechKey": "dg-relay-key", "encoding": "linear16", **audio})
        event = ws.receive_json()

    assert event == {"type": "error", "message": "Invalid audio format"}


def test_speech_stream_passes_pcm_format_to_recognizer(monkeypatch) -> None:
    captured: dict = {}

    async def fake_connect(url, **kwargs):
        captured["url"] = url
        return FakeSocket()

    monkeypatch.setattr(api_server, "speech_connect", fake_connect)
    client = TestClient(api_server.app)

    with client.websocket_connect("/api/stt/stream") as ws:
        ws.send_json({"speechKey": "dg-relay-key", "encoding": "linear16", "sampleRate": "48000", "channels": 2})
        first = ws.receive_json()
        ws.send_json({"command": "stop"})
        ws.receive_json()

    assert first == {"type": "connection", "connected": True}
    assert "encoding=linear16" in captured["url"]
    assert "sample_rate=48000" in captured["url"]
    assert "channels=2" in captured["url"]
