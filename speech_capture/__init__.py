"""Speech capture: audio sources, recognizer stream and typed transcript events."""
from .adapter import SpeechCaptureAdapter
from .deepgram import auth_headers, listen_url, parse_message
from .events import (
    CONNECTION_ERROR,
    MICROPHONE_ERROR,
    CaptureState,
    ConnectionChanged,
    FinalTranscript,
    PartialTranscript,
    SpeechError,
    SpeechEvent,
    SpeechStarted,
    UtteranceEnd,
    parse_event,
)
from .sources import AudioSource, MicrophoneSource, RelayAudioSource, SpeechCaptureError

__all__ = [
    "AudioSource",
    "CONNECTION_ERROR",
    "CaptureState",
    "ConnectionChanged",
    "FinalTranscript",
    "MICROPHONE_ERROR",
    "MicrophoneSource",
    "PartialTranscript",
    "RelayAudioSource",
    "SpeechCaptureAdapter",
    "SpeechCaptureError",
    "SpeechError",
    "SpeechEvent",
    "SpeechStarted",
    "UtteranceEnd",
    "auth_headers",
    "listen_url",
    "parse_event",
    "parse_message",
]
