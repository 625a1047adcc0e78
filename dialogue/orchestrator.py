from __future__ import annotations  # Interviewer turn generation and completion detection

import logging
from pathlib import Path
from typing import Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate

from config import DialogueSettings, LlmRoute, load_config, route_for
from domain import ConversationEntry, FeedbackReport, InterviewConfig
from feedback import FEEDBACK_KEY, FeedbackSynthesizer, cover_letter_block, render_conversation
from llm_gateway import HttpClient, chat, prompt_messages

from .models import InterviewTurnRequest, NextTurn, TurnResult
from .prompts import INTERVIEWER_REQUEST, INTERVIEWER_TEMPLATE, phase_variables


logger = logging.getLogger(__name__)

NEXT_QUESTION_KEY = "dialogue.next_question"  # Registry key for the interviewer route


class DialogueError(RuntimeError):  # Question generation produced no usable reply
    pass


def count_exchanges(history: Sequence[ConversationEntry]) -> int:  # Candidate answers given so far
    return sum(1 for entry in history if entry.speaker == "candidate")


class DialogueOrchestrator:  # Chooses the next interviewer question or ends the interview
    def __init__(
        self,
        route: LlmRoute,
        settings: DialogueSettings,
        synthesizer: FeedbackSynthesizer,
        *,
        client: Optional[HttpClient] = None,
    ) -> None:
        self._route = route
        self._settings = settings
        self._synthesizer = synthesizer
        self._client = client
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", INTERVIEWER_TEMPLATE),
                ("human", INTERVIEWER_REQUEST),
            ]
        )

    @property
    def settings(self) -> DialogueSettings:
        return self._settings

    def build_messages(
        self,
        transcript: str,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> list[dict]:
        # The latest answer counts toward the phase even though it is not in history yet.
        exchanges = count_exchanges(history) + 1
        return prompt_messages(
            self._prompt,
            job_description=config.jobDescription,
            resume=config.resume,
            cover_letter=cover_letter_block(config),
            conversation=render_conversation(history),
            transcript=transcript,
            **phase_variables(self._settings, exchanges),
        )

    def is_sentinel(self, reply: str) -> bool:
        return reply.strip() == self._settings.sentinel

    def reached_cap(self, history: Sequence[ConversationEntry]) -> bool:
        return len(history) >= self._settings.max_entries

    def next_turn(
        self,
        transcript: str,
        history: Sequence[ConversationEntry],
        config: InterviewConfig,
    ) -> TurnResult:
        """Ask the interviewer model for the next question.

        The interview completes when the reply equals the sentinel exactly or
        when the history already holds ``max_entries`` entries. Gateway errors
        propagate to the caller unchanged.
        """

        messages = self.build_messages(transcript, history, config)
        reply = chat(
            messages,
            NextTurn,
            cfg=self._route,
            client=self._client,
            api_key=config.credentials.llmKey or None,
        )
        text = reply.text.strip()
        if not text:
            raise DialogueError("No response from language model")

        if self.is_sentinel(text) or self.reached_cap(history):
            logger.info(
                "Interview complete entries=%d sentinel=%s",
                len(history),
                self.is_sentinel(text),
            )
            reviewed = list(history) + [ConversationEntry(speaker="candidate", message=transcript)]
            report = self._synthesizer.synthesize(reviewed, config)
            return TurnResult(isComplete=True, feedback=report)

        return TurnResult(isComplete=False, question=text)

    def final_feedback(self, history: Sequence[ConversationEntry], config: InterviewConfig) -> FeedbackReport:
        return self._synthesizer.synthesize(history, config)

    def handle(self, request: InterviewTurnRequest) -> TurnResult:  # Wire request entry point
        return self.next_turn(request.transcript, request.conversationHistory, request.to_config())


def build_orchestrator(config_path: Path, *, client: Optional[HttpClient] = None) -> DialogueOrchestrator:  # Wire routes from the app config
    cfg = load_config(config_path)
    synthesizer = FeedbackSynthesizer(route_for(cfg, FEEDBACK_KEY), client=client)
    return DialogueOrchestrator(route_for(cfg, NEXT_QUESTION_KEY), cfg.dialogue, synthesizer, client=client)


__all__ = [
    "DialogueError",
    "DialogueOrchestrator",
    "NEXT_QUESTION_KEY",
    "build_orchestrator",
    "count_exchanges",
]
