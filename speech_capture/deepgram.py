from __future__ import annotations  # Deepgram live transcription wire helpers

import json
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

from config import Settings

from .events import FinalTranscript, PartialTranscript, SpeechError, SpeechEvent, SpeechStarted, UtteranceEnd


logger = logging.getLogger(__name__)

CLOSE_STREAM = json.dumps({"type": "CloseStream"})


def listen_url(
    settings: Settings,
    *,
    encoding: Optional[str] = "linear16",
    sample_rate: Optional[int] = None,
    channels: Optional[int] = None,
) -> str:
    """Streaming endpoint with interim results and endpoint detection enabled.

    Raw PCM needs ``encoding``/``sample_rate``/``channels``; containerized
    audio (webm/opus from a browser) is self-describing, so pass
    ``encoding=None`` to leave them out.
    """

    params: Dict[str, str] = {
        "model": settings.SPEECH_MODEL,
        "language": settings.SPEECH_LANGUAGE,
        "smart_format": "true",
        "interim_results": "true",
        "endpointing": str(settings.SPEECH_ENDPOINTING_MS),
        "vad_events": "true",
        "utterance_end_ms": str(settings.SPEECH_UTTERANCE_END_MS),
    }
    if encoding:
        params["encoding"] = encoding
        params["sample_rate"] = str(sample_rate or settings.AUDIO_SAMPLE_RATE)
        params["channels"] = str(channels or settings.AUDIO_CHANNELS)
    return f"{settings.SPEECH_WS_URL}?{urlencode(params)}"


def auth_headers(speech_key: str) -> Dict[str, str]:
    return {"Authorization": f"Token {speech_key}"}


def _transcript(channel: object) -> str:  # channel.alternatives[0].transcript, "" for any other shape
    alternatives = channel.get("alternatives") if isinstance(channel, dict) else None
    if not isinstance(alternatives, list) or not alternatives or not isinstance(alternatives[0], dict):
        return ""
    transcript = alternatives[0].get("transcript")
    return transcript.strip() if isinstance(transcript, str) else ""


def parse_message(raw: str | bytes) -> Optional[SpeechEvent]:  # Map one provider message to an event, None when irrelevant
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Ignoring non-JSON speech message")
        return None
    if not isinstance(data, dict):
        return None

    kind = data.get("type")
    if kind == "Results":
        text = _transcript(data.get("channel"))
        if not text:
            return None
        if data.get("is_final"):
            return FinalTranscript(text=text, speech_final=bool(data.get("speech_final")))
        return PartialTranscript(text=text)
    if kind == "SpeechStarted":
        return SpeechStarted()
    if kind == "UtteranceEnd":
        return UtteranceEnd()
    if kind == "Error":
        detail = data.get("description") or data.get("message") or "unknown error"
        logger.error("Speech provider error: %s", detail)
        return SpeechError(message=f"Speech recognition error: {detail}")
    return None


__all__ = ["CLOSE_STREAM", "auth_headers", "listen_url", "parse_message"]
