from __future__ import annotations  # Post-interview coaching report generation

import logging
from textwrap import dedent
from typing import Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from domain import ConversationEntry, FeedbackReport, ImprovementItem, InterviewConfig, StrengthItem
from llm_gateway import HttpClient, LlmGatewayError, chat, prompt_messages


logger = logging.getLogger(__name__)

FEEDBACK_KEY = "feedback.synthesize"  # Registry key for the coaching route

COACH_SYSTEM_PROMPT = "You are an expert interview coach providing detailed, constructive feedback."

FEEDBACK_TEMPLATE = dedent(
    """
    As an expert interview coach, analyze this mock interview and provide constructive feedback. Focus on specific moments and actionable advice.

    Job Description:
    {job_description}

    Candidate's Resume:
    {resume}

    {cover_letter}

    Interview Conversation:
    {conversation}

    Please provide feedback in the following JSON format:
    {{
      "strengths": [
        {{
          "title": "Strength title",
          "description": "What they did well",
          "moment": "Specific quote or moment from the interview"
        }}
      ],
      "improvements": [
        {{
          "title": "Area for improvement",
          "description": "What could be better",
          "suggestion": "Specific actionable advice"
        }}
      ]
    }}

    Focus on:
    - Communication clarity and structure
    - Specific examples and evidence provided
    - Alignment with job requirements
    - Professional presence and confidence
    - Areas where responses could be strengthened

    Provide 2-4 items in each category. Be specific and reference actual moments from the conversation.
    """
).strip()


def fallback_report() -> FeedbackReport:
    """Fixed report used whenever the coaching call cannot produce one."""

    return FeedbackReport(
        strengths=[
            StrengthItem(
                title="Participated in Mock Interview",
                description="You completed the interview process and engaged with the questions",
                moment="Throughout the interview session",
            )
        ],
        improvements=[
            ImprovementItem(
                title="Continue Practicing",
                description="Regular practice helps improve interview performance",
                suggestion="Schedule regular mock interviews to build confidence and refine your responses",
            )
        ],
    )


def render_conversation(history: Sequence[ConversationEntry]) -> str:  # One "speaker: message" line per entry
    return "\n".join(f"{entry.speaker}: {entry.message}" for entry in history)


def cover_letter_block(config: InterviewConfig) -> str:
    if config.coverLetter and config.coverLetter.strip():
        return f"Cover Letter:\n{config.coverLetter}"
    return ""


class FeedbackSynthesizer:  # Coaching agent turning a transcript into a FeedbackReport
    def __init__(self, route: LlmRoute, *, client: Optional[HttpClient] = None) -> None:
        self._route = route
        self._client = client
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", COACH_SYSTEM_PROMPT),
                ("human", FEEDBACK_TEMPLATE),
            ]
        )

    def build_messages(self, history: Sequence[ConversationEntry], config: InterviewConfig) -> list[dict]:
        return prompt_messages(
            self._prompt,
            job_description=config.jobDescription,
            resume=config.resume,
            cover_letter=cover_letter_block(config),
            conversation=render_conversation(history),
        )

    def synthesize(self, history: Sequence[ConversationEntry], config: InterviewConfig) -> FeedbackReport:
        """Produce the coaching report, falling back to a fixed report on any failure."""

        messages = self.build_messages(history, config)
        try:
            return chat(
                messages,
                FeedbackReport,
                cfg=self._route,
                client=self._client,
                api_key=config.credentials.llmKey or None,
            )
        except LlmGatewayError as exc:
            logger.warning("Feedback generation failed, using fallback report: %s", exc)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected feedback generation error, using fallback report")
        return fallback_report()


__all__ = [
    "COACH_SYSTEM_PROMPT",
    "FEEDBACK_KEY",
    "FEEDBACK_TEMPLATE",
    "FeedbackSynthesizer",
    "cover_letter_block",
    "fallback_report",
    "render_conversation",
]
