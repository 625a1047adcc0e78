from __future__ import annotations  # Wire models for the interview question endpoint

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from domain import ConversationEntry, Credentials, FeedbackReport, InterviewConfig


class InterviewTurnRequest(BaseModel):  # Payload posted after each finalized transcript
    transcript: str = ""
    conversationHistory: List[ConversationEntry] = Field(default_factory=list)
    jobDescription: str = ""
    resume: str = ""
    coverLetter: Optional[str] = None
    credentials: Credentials = Field(
        default_factory=Credentials,
        validation_alias=AliasChoices("credentials", "apiKeys"),
    )

    def to_config(self) -> InterviewConfig:
        return InterviewConfig(
            jobDescription=self.jobDescription,
            resume=self.resume,
            coverLetter=self.coverLetter,
            credentials=self.credentials,
        )

    @classmethod
    def for_turn(
        cls,
        transcript: str,
        history: List[ConversationEntry],
        config: InterviewConfig,
    ) -> "InterviewTurnRequest":
        return cls(
            transcript=transcript,
            conversationHistory=list(history),
            jobDescription=config.jobDescription,
            resume=config.resume,
            coverLetter=config.coverLetter,
            credentials=config.credentials,
        )


class TurnResult(BaseModel):  # Either the next question or the terminal feedback
    isComplete: bool
    question: Optional[str] = None
    feedback: Optional[FeedbackReport] = None


class NextTurn(BaseModel):  # Raw interviewer reply from the language model
    text: str

    @classmethod
    def from_raw_content(cls, content: str) -> "NextTurn":  # Plain text replies are the common case
        return cls(text=content.strip())


__all__ = ["InterviewTurnRequest", "NextTurn", "TurnResult"]
