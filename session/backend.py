from __future__ import annotations  # Clients the interview session uses to reach the dialogue backend

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from config import settings
from dialogue import DialogueError, DialogueOrchestrator, InterviewTurnRequest, TurnResult
from domain import ConversationEntry, FeedbackReport, InterviewConfig
from llm_gateway import LlmGatewayError


logger = logging.getLogger(__name__)


class BackendError(RuntimeError):  # Next question could not be obtained
    pass


class DialogueBackend(Protocol):  # What the session needs from the question service
    async def next_turn(
        self,
        transcript: str,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> TurnResult: ...

    async def final_feedback(
        self,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> FeedbackReport: ...


class HttpDialogueBackend:
    """Talks to ``api_server`` over HTTP."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT_S
        self._client = client

    async def next_turn(
        self,
        transcript: str,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> TurnResult:
        request = InterviewTurnRequest.for_turn(transcript, list(history), config)
        data = await self._post("/api/interview", request.model_dump(mode="json"))
        try:
            return TurnResult.model_validate(data)
        except ValueError as exc:
            raise BackendError("Backend returned an unexpected payload") from exc

    async def final_feedback(
        self,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> FeedbackReport:
        request = InterviewTurnRequest.for_turn("", list(history), config)
        payload = request.model_dump(mode="json", exclude={"transcript"})
        data = await self._post("/api/interview/feedback", payload)
        try:
            result = TurnResult.model_validate(data)
        except ValueError as exc:
            raise BackendError("Backend returned an unexpected payload") from exc
        if result.feedback is None:
            raise BackendError("Backend returned no feedback")
        return result.feedback

    async def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Backend request failed url=%s: %s", url, exc)
            raise BackendError("Backend unreachable") from exc
        if response.status_code >= 400:
            logger.error("Backend error status=%s url=%s", response.status_code, url)
            raise BackendError(f"API Error: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError("Backend payload was not JSON") from exc


class LocalDialogueBackend:
    """Runs the orchestrator in-process on a worker thread."""

    def __init__(self, orchestrator: DialogueOrchestrator) -> None:
        self._orchestrator = orchestrator

    async def next_turn(
        self,
        transcript: str,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> TurnResult:
        try:
            return await asyncio.to_thread(self._orchestrator.next_turn, transcript, list(history), config)
        except (DialogueError, LlmGatewayError) as exc:
            logger.error("Local dialogue failure: %s", exc)
            raise BackendError(str(exc)) from exc

    async def final_feedback(
        self,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> FeedbackReport:
        return await asyncio.to_thread(self._orchestrator.final_feedback, list(history), config)


__all__ = ["BackendError", "DialogueBackend", "HttpDialogueBackend", "LocalDialogueBackend"]
