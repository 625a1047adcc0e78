from __future__ import annotations  # Typed events emitted by the speech capture adapter

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

MICROPHONE_ERROR = "Failed to access microphone or start recording"
CONNECTION_ERROR = "Failed to connect to speech recognition service"


class PartialTranscript(BaseModel):  # Interim hypothesis, superseded by the next partial or a final
    type: Literal["partial"] = "partial"
    text: str


class FinalTranscript(BaseModel):  # Completed utterance
    type: Literal["final"] = "final"
    text: str
    speech_final: bool = False


class SpeechStarted(BaseModel):
    type: Literal["speech_started"] = "speech_started"


class UtteranceEnd(BaseModel):
    type: Literal["utterance_end"] = "utterance_end"


class ConnectionChanged(BaseModel):
    type: Literal["connection"] = "connection"
    connected: bool


class SpeechError(BaseModel):  # User-visible failure message
    type: Literal["error"] = "error"
    message: str


SpeechEvent = Annotated[
    Union[PartialTranscript, FinalTranscript, SpeechStarted, UtteranceEnd, ConnectionChanged, SpeechError],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[SpeechEvent] = TypeAdapter(SpeechEvent)


def parse_event(data: str | bytes | dict) -> SpeechEvent:
    """Rebuild an event from its relayed JSON form."""

    if isinstance(data, dict):
        return _EVENT_ADAPTER.validate_python(data)
    return _EVENT_ADAPTER.validate_json(data)


class CaptureState(BaseModel):  # Observable adapter state mirrored from the event stream
    connected: bool = False
    is_speaking: bool = False
    partial_transcript: str = ""
    final_transcript: str = ""
    endpoint_reached: bool = False
    error: Optional[str] = None

    def apply(self, event: SpeechEvent) -> None:
        if isinstance(event, PartialTranscript):
            self.partial_transcript = event.text
        elif isinstance(event, FinalTranscript):
            self.final_transcript = event.text
            self.partial_transcript = ""
        elif isinstance(event, SpeechStarted):
            self.is_speaking = True
        elif isinstance(event, UtteranceEnd):
            self.is_speaking = False
            self.endpoint_reached = True
        elif isinstance(event, ConnectionChanged):
            self.connected = event.connected
            if not event.connected:
                self.is_speaking = False
                self.partial_transcript = ""
        elif isinstance(event, SpeechError):
            self.error = event.message
            self.connected = False


__all__ = [
    "CONNECTION_ERROR",
    "CaptureState",
    "ConnectionChanged",
    "FinalTranscript",
    "MICROPHONE_ERROR",
    "PartialTranscript",
    "SpeechError",
    "SpeechEvent",
    "SpeechStarted",
    "UtteranceEnd",
    "parse_event",
]
