import asyncio
import json
import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

from config import LlmRoute, Settings
from domain import ConversationEntry, Credentials, FeedbackReport, InterviewConfig
from dialogue import TurnResult

_dumps = json.dumps


class FakeResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        return self._payload

    @property
    def text(self) -> str:
        return json.dumps(self._payload)


class FakeLlmClient:
    """Replays queued chat completions and records every request."""

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.calls: List[dict] = []

    def post(self, url: str, *, json: dict, headers: dict, timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if not self.replies:
            raise AssertionError("Unexpected LLM call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, FakeResponse):
            return reply
        if not isinstance(reply, str):
            reply = _dumps(reply)
        return FakeResponse(200, {"choices": [{"message": {"content": reply}}]})


class FakeSocket:
    """Stand-in for a recognizer WebSocket: scripted inbound messages, recorded outbound frames."""

    def __init__(self, messages: Optional[List[Any]] = None) -> None:
        self.sent: List[Any] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()
        for message in messages or []:
            self._incoming.put_nowait(message if isinstance(message, (str, bytes)) else json.dumps(message))

    def feed(self, message: Any) -> None:
        self._incoming.put_nowait(message if isinstance(message, (str, bytes)) else json.dumps(message))

    async def send(self, data: Any) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(None)

    def __aiter__(self) -> "FakeSocket":
        return self

    async def __anext__(self) -> Any:
        item = await self._incoming.get()
        if item is None:
            raise StopAsyncIteration
        return item


class FakeAdapter:
    """Speech adapter double exposing the surface the interview session uses."""

    def __init__(self, *, start_ok: bool = True) -> None:
        self.events: asyncio.Queue = asyncio.Queue()
        self.start_ok = start_ok
        self.is_recording = False
        self.starts = 0
        self.stops = 0

    async def start_recording(self) -> bool:
        self.starts += 1
        self.is_recording = self.start_ok
        return self.start_ok

    async def stop_recording(self) -> None:
        if self.is_recording:
            self.stops += 1
        self.is_recording = False


class ScriptedBackend:
    """Dialogue backend returning queued results, optionally after a delay."""

    def __init__(self, *results: Any, delay: float = 0.0, feedback: Any = None) -> None:
        self.results = list(results)
        self.delay = delay
        self.feedback = feedback
        self.calls: List[dict] = []
        self.feedback_calls: List[list] = []

    async def next_turn(self, transcript, history, config) -> TurnResult:
        self.calls.append({"transcript": transcript, "history": list(history)})
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def final_feedback(self, history, config) -> FeedbackReport:
        self.feedback_calls.append(list(history))
        if isinstance(self.feedback, Exception):
            raise self.feedback
        return self.feedback


def results_message(text: str, *, is_final: bool = False, speech_final: bool = False) -> dict:
    return {
        "type": "Results",
        "is_final": is_final,
        "speech_final": speech_final,
        "channel": {"alternatives": [{"transcript": text, "confidence": 0.98}]},
    }


def feedback_payload() -> dict:
    return {
        "strengths": [
            {
                "title": "Structured answers",
                "description": "Answers followed a clear situation-action-result arc",
                "moment": "Describing the payments migration",
            }
        ],
        "improvements": [
            {
                "title": "Quantify impact",
                "description": "Results were described qualitatively",
                "suggestion": "Attach a metric to each outcome you mention",
            }
        ],
    }


@pytest.fixture
def route() -> LlmRoute:
    return LlmRoute(
        name="test",
        base_url="http://llm.test",
        endpoint="/v1/chat/completions",
        model="gpt-4o",
        timeout_s=5.0,
        temperature=0.7,
        max_tokens=300,
    )


@pytest.fixture
def coach_route() -> LlmRoute:
    return LlmRoute(
        name="coach",
        base_url="http://llm.test",
        endpoint="/v1/chat/completions",
        model="gpt-4o",
        timeout_s=5.0,
        temperature=0.3,
        max_tokens=1000,
    )


@pytest.fixture
def interview_config() -> InterviewConfig:
    return InterviewConfig(
        jobDescription="Senior backend engineer building payment APIs in Python.",
        resume="Seven years of Python, led a payments migration at a fintech.",
        coverLetter=None,
        credentials=Credentials(speechKey="dg-key-1234567", ttsKey="sp-key-1234567", llmKey="sk-test-1234567"),
    )


@pytest.fixture
def make_history() -> Callable[[int], List[ConversationEntry]]:
    def _make(count: int) -> List[ConversationEntry]:
        start = datetime(2024, 5, 1, 9, 0, 0)
        entries = []
        for index in range(count):
            speaker = "interviewer" if index % 2 == 0 else "candidate"
            entries.append(
                ConversationEntry(
                    speaker=speaker,
                    message=f"{speaker} message {index}",
                    timestamp=start + timedelta(minutes=index),
                )
            )
        return entries

    return _make


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(_env_file=None, END_DELAY_SECONDS=0, SPEECH_MS_PER_CHAR=0)
