from __future__ import annotations  # Live interview session driven by speech events

import asyncio
import inspect
import logging
from typing import Any, Callable, List, Optional, Set

from pydantic import BaseModel

from config import Settings, settings as default_settings
from domain import ConversationEntry, FeedbackReport, InterviewConfig
from feedback import fallback_report
from observability import log_event
from speech_capture import (
    ConnectionChanged,
    FinalTranscript,
    PartialTranscript,
    SpeechCaptureAdapter,
    SpeechError,
    SpeechEvent,
    SpeechStarted,
    UtteranceEnd,
)

from .backend import BackendError, DialogueBackend
from .state import SESSION_TRANSITIONS, SessionStatus, check_transition


logger = logging.getLogger(__name__)

OPENING_QUESTION = (
    "Hello! Thank you for taking the time to interview with us today. "
    "Let's start with a simple question: Can you tell me a bit about yourself "
    "and why you're interested in this position?"
)

CONNECTION_ERROR_TITLE = "Connection Error"
INTERVIEW_ERROR_TITLE = "Interview Error"
INTERVIEW_ERROR_TEXT = "Failed to continue interview. Please check your connection."

Listener = Callable[["InterviewSession"], Any]
CompletionHook = Callable[[FeedbackReport, List[ConversationEntry]], Any]


class Notification(BaseModel):  # Dismissible message shown to the user
    title: str
    description: str
    variant: str = "destructive"


class InterviewSession:
    """One interview: starting -> active -> ending.

    Finalized transcripts are answered one at a time under a lock so the
    history keeps turn order even when the candidate speaks again before the
    previous question arrives.
    """

    def __init__(
        self,
        config: InterviewConfig,
        backend: DialogueBackend,
        adapter: SpeechCaptureAdapter,
        *,
        settings: Settings = default_settings,
        on_complete: Optional[CompletionHook] = None,
        session_id: str = "local",
    ) -> None:
        self.config = config
        self.session_id = session_id
        self.status: SessionStatus = "starting"
        self.history: List[ConversationEntry] = []
        self.partial_transcript = ""
        self.connected = False
        self.candidate_speaking = False
        self.interviewer_speaking = False
        self.notifications: List[Notification] = []
        self.feedback: Optional[FeedbackReport] = None
        self._backend = backend
        self._adapter = adapter
        self._settings = settings
        self._on_complete = on_complete
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()
        self._done = asyncio.Event()
        self._speaking_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_recording(self) -> bool:
        return self._adapter.is_recording

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _transition(self, target: SessionStatus) -> None:
        check_transition(SESSION_TRANSITIONS, self.status, target)
        log_event("session.status", self.session_id, previous=self.status, status=target)
        self.status = target
        self._changed()

    def notify(self, title: str, description: str) -> None:
        self.notifications.append(Notification(title=title, description=description))
        self._changed()

    def dismiss(self, index: int = 0) -> None:
        if 0 <= index < len(self.notifications):
            self.notifications.pop(index)
            self._changed()

    async def toggle_recording(self) -> None:
        """Start or stop the microphone; the first start opens the interview."""

        if self.status == "ending":
            return
        if self._adapter.is_recording:
            await self._adapter.stop_recording()
            self._changed()
            return
        if not await self._adapter.start_recording():
            return
        if self.status == "starting":
            self._transition("active")
            self.say(OPENING_QUESTION)
        else:
            self._changed()

    def say(self, question: str) -> None:
        self.history.append(ConversationEntry(speaker="interviewer", message=question))
        self.interviewer_speaking = True
        if self._speaking_task is not None:
            self._speaking_task.cancel()
        duration = len(question) * self._settings.SPEECH_MS_PER_CHAR / 1000
        self._speaking_task = asyncio.create_task(self._finish_speaking(duration))
        self._changed()

    async def _finish_speaking(self, duration: float) -> None:
        await asyncio.sleep(duration)
        self.interviewer_speaking = False
        self._changed()

    async def handle_event(self, event: SpeechEvent) -> None:
        if isinstance(event, PartialTranscript):
            self.partial_transcript = event.text
        elif isinstance(event, FinalTranscript):
            self.partial_transcript = ""
            self._spawn(self.handle_final(event.text))
        elif isinstance(event, SpeechStarted):
            self.candidate_speaking = True
        elif isinstance(event, UtteranceEnd):
            self.candidate_speaking = False
        elif isinstance(event, ConnectionChanged):
            self.connected = event.connected
            if not event.connected:
                self.candidate_speaking = False
        elif isinstance(event, SpeechError):
            self.notify(CONNECTION_ERROR_TITLE, event.message)
            return
        self._changed()

    async def handle_final(self, transcript: str) -> None:
        """Record the answer and fetch the next question, one transcript at a time."""

        async with self._lock:
            if self.status != "active":
                logger.info("Dropping transcript received while %s", self.status)
                return
            prior = list(self.history)
            self.history.append(ConversationEntry(speaker="candidate", message=transcript))
            self._changed()
            log_event("turn.answer", self.session_id, entries=len(self.history))
            try:
                result = await self._backend.next_turn(transcript, prior, self.config)
            except BackendError as exc:
                logger.error("Failed to get next question: %s", exc)
                self.notify(INTERVIEW_ERROR_TITLE, INTERVIEW_ERROR_TEXT)
                return
            if self.status != "active":
                return
            if result.isComplete:
                log_event("interview.complete", self.session_id, entries=len(self.history), outcome="model")
                await self._wind_down(result.feedback or fallback_report())
            elif result.question:
                self.say(result.question)

    async def end_interview(self) -> None:
        """Manual end: stop capture, request feedback, fall back when it fails."""

        if self.status == "ending":
            return
        self._transition("ending")
        if self._adapter.is_recording:
            await self._adapter.stop_recording()
        try:
            report = await self._backend.final_feedback(self.history, self.config)
        except BackendError as exc:
            logger.warning("Feedback request failed, using fallback report: %s", exc)
            report = fallback_report()
        log_event("interview.complete", self.session_id, entries=len(self.history), outcome="manual")
        self._spawn(self._finish_after_delay(report))

    async def _wind_down(self, report: FeedbackReport) -> None:
        self._transition("ending")
        if self._adapter.is_recording:
            await self._adapter.stop_recording()
        self._spawn(self._finish_after_delay(report))

    async def _finish_after_delay(self, report: FeedbackReport) -> None:
        await asyncio.sleep(self._settings.END_DELAY_SECONDS)
        self.feedback = report
        if self._speaking_task is not None:
            self._speaking_task.cancel()
        self.interviewer_speaking = False
        self._done.set()
        self._changed()
        if self._on_complete is not None:
            outcome = self._on_complete(report, list(self.history))
            if inspect.isawaitable(outcome):
                await outcome

    async def run(self) -> FeedbackReport:
        """Pump adapter events until the session has produced its feedback."""

        done_waiter = asyncio.create_task(self._done.wait())
        try:
            while not self._done.is_set():
                getter = asyncio.create_task(self._adapter.events.get())
                finished, _ = await asyncio.wait({getter, done_waiter}, return_when=asyncio.FIRST_COMPLETED)
                if getter in finished:
                    await self.handle_event(getter.result())
                else:
                    getter.cancel()
        finally:
            done_waiter.cancel()
        return self.feedback or fallback_report()

    async def wait_finished(self) -> FeedbackReport:
        await self._done.wait()
        return self.feedback or fallback_report()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = [
    "CONNECTION_ERROR_TITLE",
    "INTERVIEW_ERROR_TEXT",
    "INTERVIEW_ERROR_TITLE",
    "InterviewSession",
    "Notification",
    "OPENING_QUESTION",
]
