from __future__ import annotations  # Streaming speech-to-text adapter

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from config import Settings, settings as default_settings

from .deepgram import CLOSE_STREAM, auth_headers, listen_url, parse_message
from .events import (
    CONNECTION_ERROR,
    MICROPHONE_ERROR,
    CaptureState,
    ConnectionChanged,
    SpeechError,
    SpeechEvent,
)
from .sources import AudioSource, MicrophoneSource


logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[Any]]  # websockets.connect compatible


class SpeechCaptureAdapter:
    """Streams audio from a source to the recognizer and surfaces typed events.

    Events land on ``events`` (an ``asyncio.Queue``) and are mirrored into
    ``state``. Failures become ``SpeechError`` events; nothing reconnects on
    its own, callers start again.
    """

    def __init__(
        self,
        speech_key: str,
        *,
        source_factory: Callable[[], AudioSource] = MicrophoneSource,
        config: Settings = default_settings,
        connect: Optional[Connector] = None,
    ) -> None:
        self._speech_key = speech_key
        self._source_factory = source_factory
        self._settings = config
        self._connect = connect or websockets.connect
        self.events: asyncio.Queue[SpeechEvent] = asyncio.Queue()
        self.state = CaptureState()
        self._source: Optional[AudioSource] = None
        self._ws: Any = None
        self._sender: Optional[asyncio.Task] = None
        self._receiver: Optional[asyncio.Task] = None
        self._active = False

    @property
    def is_recording(self) -> bool:
        return self._active

    async def start_recording(self) -> bool:
        """Open the audio source and the recognizer stream; False when either fails."""

        if self._active:
            return True
        self.state.error = None
        self.state.endpoint_reached = False

        source = self._source_factory()
        try:
            await source.open()
        except Exception as exc:  # noqa: BLE001
            logger.error("Audio source failed to open: %s", exc)
            self._emit(SpeechError(message=MICROPHONE_ERROR))
            return False

        url = listen_url(
            self._settings,
            encoding=source.encoding,
            sample_rate=source.sample_rate,
            channels=source.channels,
        )
        try:
            ws = await self._connect(url, additional_headers=auth_headers(self._speech_key))
        except Exception as exc:  # noqa: BLE001
            logger.error("Speech service connection failed: %s", exc)
            await source.close()
            self._emit(SpeechError(message=CONNECTION_ERROR))
            return False

        self._source = source
        self._ws = ws
        self._active = True
        logger.info("Speech stream connected")
        self._emit(ConnectionChanged(connected=True))
        self._sender = asyncio.create_task(self._send_audio(ws, source))
        self._receiver = asyncio.create_task(self._receive_events(ws))
        return True

    async def stop_recording(self) -> None:
        """Stop capture and close the stream. Safe to call when already stopped."""

        if not self._active:
            return
        self._active = False
        source, ws = self._source, self._ws
        self._source = None
        self._ws = None

        if source is not None:
            await source.close()
        if self._sender is not None:
            await self._sender
            self._sender = None
        if ws is not None:
            try:
                await ws.send(CLOSE_STREAM)
            except ConnectionClosed:
                pass
            await ws.close()
        if self._receiver is not None:
            await self._receiver
            self._receiver = None
        logger.info("Speech stream closed")
        self._emit(ConnectionChanged(connected=False))

    async def _send_audio(self, ws: Any, source: AudioSource) -> None:
        try:
            async for chunk in source.chunks():
                await ws.send(chunk)
        except ConnectionClosed:
            logger.info("Speech stream closed while sending audio")

    async def _receive_events(self, ws: Any) -> None:
        try:
            async for message in ws:
                event = parse_message(message)
                if event is not None:
                    self._emit(event)
        except ConnectionClosedError as exc:
            logger.error("Speech stream dropped: %s", exc)
            if self._active:
                self._emit(SpeechError(message=CONNECTION_ERROR))
        except Exception:  # noqa: BLE001
            logger.exception("Speech stream receiver failed")
            if self._active:
                self._emit(SpeechError(message=CONNECTION_ERROR))
                await ws.close()
        if self._active:
            # Stream ended without stop_recording; stop feeding audio.
            self._active = False
            source = self._source
            self._source = None
            self._ws = None
            if source is not None:
                await source.close()
            self._emit(ConnectionChanged(connected=False))

    def _emit(self, event: SpeechEvent) -> None:
        self.state.apply(event)
        self.events.put_nowait(event)


__all__ = ["Connector", "SpeechCaptureAdapter"]
