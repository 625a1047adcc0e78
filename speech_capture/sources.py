from __future__ import annotations  # Audio sources feeding the speech capture adapter

import asyncio
import logging
from typing import Any, AsyncIterator, Optional, Protocol

from config import Settings, settings as default_settings


logger = logging.getLogger(__name__)


class SpeechCaptureError(RuntimeError):  # Audio could not be acquired or streamed
    pass


class AudioSource(Protocol):  # Produces encoded audio chunks for the recognizer
    encoding: Optional[str]
    sample_rate: int
    channels: int

    async def open(self) -> None: ...

    def chunks(self) -> AsyncIterator[bytes]: ...

    async def close(self) -> None: ...


class _QueuedSource:  # Shared queue plumbing; None marks end of stream
    encoding: Optional[str] = "linear16"

    def __init__(self, sample_rate: int, channels: int) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue()

    async def chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk


class MicrophoneSource(_QueuedSource):
    """Local microphone capture through PyAudio.

    PyAudio delivers frames on its own thread; each block is handed to the
    event loop with ``call_soon_threadsafe``.
    """

    def __init__(self, config: Settings = default_settings) -> None:
        super().__init__(config.AUDIO_SAMPLE_RATE, config.AUDIO_CHANNELS)
        self.frames_per_buffer = config.AUDIO_SAMPLE_RATE * config.AUDIO_CHUNK_MS // 1000
        self._audio: Any = None
        self._stream: Any = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def open(self) -> None:
        self._loop = asyncio.get_running_loop()
        try:
            import pyaudio

            self._audio = pyaudio.PyAudio()
            self._stream = self._audio.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=self._on_frames,
            )
            self._stream.start_stream()
        except Exception as exc:  # noqa: BLE001
            logger.error("Microphone open failed: %s", exc)
            self._release()
            raise SpeechCaptureError("Microphone unavailable") from exc
        logger.info(
            "Microphone open rate=%d channels=%d frames=%d",
            self.sample_rate,
            self.channels,
            self.frames_per_buffer,
        )

    def _on_frames(self, in_data: bytes, frame_count: int, time_info: Any, status: int) -> tuple:  # PyAudio thread
        import pyaudio

        loop = self._loop
        if loop is not None and not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self._queue.put_nowait, in_data)
            except RuntimeError:
                return None, pyaudio.paComplete
        return None, pyaudio.paContinue

    async def close(self) -> None:
        self._release()
        self._queue.put_nowait(None)

    def _release(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop_stream()
                self._stream.close()
            finally:
                self._stream = None
        if self._audio is not None:
            self._audio.terminate()
            self._audio = None


class RelayAudioSource(_QueuedSource):
    """Audio pushed in from elsewhere, e.g. frames a browser sends over a WebSocket.

    Browsers send webm/opus containers by default, so ``encoding`` is None
    unless the sender declares raw PCM.
    """

    def __init__(
        self,
        *,
        encoding: Optional[str] = None,
        sample_rate: int = default_settings.AUDIO_SAMPLE_RATE,
        channels: int = default_settings.AUDIO_CHANNELS,
    ) -> None:
        super().__init__(sample_rate, channels)
        self.encoding = encoding
        self._finished = False

    async def open(self) -> None:
        return None

    def push(self, chunk: bytes) -> None:
        if self._finished:
            return
        if chunk:
            self._queue.put_nowait(chunk)

    def finish(self) -> None:
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(None)

    async def close(self) -> None:
        self.finish()


__all__ = ["AudioSource", "MicrophoneSource", "RelayAudioSource", "SpeechCaptureError"]
