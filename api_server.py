from __future__ import annotations  # FastAPI server exposing the interviewer and the speech relay

import asyncio
import contextlib
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from config import settings
from dialogue import DialogueOrchestrator, InterviewTurnRequest, TurnResult, build_orchestrator
from domain import Credentials
from feedback import fallback_report
from observability import span
from speech_capture import RelayAudioSource, SpeechCaptureAdapter, SpeechError, SpeechEvent
from speech_capture.adapter import Connector


logger = logging.getLogger(__name__)

CONFIG_PATH = Path(settings.APP_CONFIG_PATH)
MISSING_FIELDS = "Missing required fields"
INVALID_AUDIO = "Invalid audio format"

# Overridable connector for the recognizer socket; None means websockets.connect
speech_connect: Optional[Connector] = None

app = FastAPI(title="Mock Interview Coach API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class StreamHello(BaseModel):  # Audio format half of the relay hello frame; credentials are read separately
    encoding: Optional[str] = None
    sampleRate: Optional[int] = Field(default=None, gt=0)
    channels: Optional[int] = Field(default=None, ge=1, le=8)


def _orchestrator() -> DialogueOrchestrator:  # Routes are re-read per request so config edits apply without restart
    return build_orchestrator(CONFIG_PATH)


def _request_id() -> str:
    return uuid.uuid4().hex[:12]


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/interview", response_model=TurnResult, response_model_exclude_none=True)
def next_question(payload: InterviewTurnRequest) -> Any:  # Next interviewer question or final feedback
    if not payload.transcript.strip() or not payload.credentials.llmKey.strip():
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS})
    with span("api.interview", _request_id(), entries=len(payload.conversationHistory)) as info:
        try:
            result = _orchestrator().handle(payload)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Interview API error")
            info["outcome"] = "error"
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "details": str(exc)},
            )
        info["outcome"] = "complete" if result.isComplete else "question"
    return result


@app.post("/api/interview/feedback", response_model=TurnResult, response_model_exclude_none=True)
def interview_feedback(payload: InterviewTurnRequest) -> TurnResult:  # Feedback for a manually ended interview
    with span("api.feedback", _request_id(), entries=len(payload.conversationHistory)) as info:
        try:
            report = _orchestrator().final_feedback(payload.conversationHistory, payload.to_config())
            info["outcome"] = "report"
        except Exception:  # noqa: BLE001
            logger.exception("Feedback API error, returning fallback report")
            info["outcome"] = "fallback"
            report = fallback_report()
    return TurnResult(isComplete=True, feedback=report)


@app.websocket("/api/stt/stream")
async def speech_stream(websocket: WebSocket) -> None:
    """Relay browser audio to the recognizer and push transcript events back.

    The first text frame carries the speech key (and optionally ``encoding``,
    ``sampleRate`` and ``channels`` for raw PCM). Binary frames are audio.
    ``{"command": "stop"}`` ends the stream.
    """

    await websocket.accept()
    try:
        hello = await websocket.receive_json()
    except WebSocketDisconnect:
        return
    except (ValueError, KeyError):
        await _send_event(websocket, SpeechError(message=MISSING_FIELDS))
        await websocket.close(code=1003)
        return
    if not isinstance(hello, dict):
        hello = {}

    try:
        credentials = Credentials.model_validate(hello)
    except ValidationError:
        credentials = Credentials()
    if not credentials.speechKey.strip():
        await _send_event(websocket, SpeechError(message=MISSING_FIELDS))
        await websocket.close(code=1008)
        return

    try:
        audio = StreamHello.model_validate(hello)
    except ValidationError:
        await _send_event(websocket, SpeechError(message=INVALID_AUDIO))
        await websocket.close(code=1003)
        return

    source = RelayAudioSource(
        encoding=audio.encoding,
        sample_rate=audio.sampleRate or settings.AUDIO_SAMPLE_RATE,
        channels=audio.channels or settings.AUDIO_CHANNELS,
    )
    adapter = SpeechCaptureAdapter(
        credentials.speechKey,
        source_factory=lambda: source,
        config=settings,
        connect=speech_connect,
    )
    session_id = _request_id()
    with span("api.stt_stream", session_id) as info:
        started = await adapter.start_recording()
        forwarder = asyncio.create_task(_forward_events(websocket, adapter))
        try:
            if started:
                info["outcome"] = await _pump_client(websocket, source)
            else:
                info["outcome"] = "start_failed"
        finally:
            await adapter.stop_recording()
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder
            await _flush_events(websocket, adapter)
    try:
        await websocket.close()
    except (WebSocketDisconnect, RuntimeError):
        pass


async def _pump_client(websocket: WebSocket, source: RelayAudioSource) -> str:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return "client_disconnect"
        data = message.get("bytes")
        if data:
            source.push(data)
            continue
        text = message.get("text")
        if not text:
            continue
        try:
            command = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON control frame")
            continue
        if isinstance(command, dict) and command.get("command") == "stop":
            return "stopped"


async def _forward_events(websocket: WebSocket, adapter: SpeechCaptureAdapter) -> None:
    while True:
        event = await adapter.events.get()
        await _send_event(websocket, event)


async def _flush_events(websocket: WebSocket, adapter: SpeechCaptureAdapter) -> None:
    while not adapter.events.empty():
        await _send_event(websocket, adapter.events.get_nowait())


async def _send_event(websocket: WebSocket, event: SpeechEvent) -> None:
    try:
        await websocket.send_text(event.model_dump_json())
    except (WebSocketDisconnect, RuntimeError):
        logger.debug("Client gone, dropping %s event", event.type)
