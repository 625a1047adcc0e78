from __future__ import annotations  # Shared interview domain models

from datetime import datetime
from typing import List, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Speaker = Literal["interviewer", "candidate"]


class ConversationEntry(BaseModel):  # Single utterance in the interview transcript
    speaker: Speaker
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)


class Credentials(BaseModel):  # Session-scoped third-party API keys, never persisted
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    speechKey: str = Field(default="", validation_alias=AliasChoices("speechKey", "deepgram", "speech_key"))
    ttsKey: str = Field(default="", validation_alias=AliasChoices("ttsKey", "speechify", "tts_key"))
    llmKey: str = Field(default="", validation_alias=AliasChoices("llmKey", "openai", "llm_key"))

    def missing(self) -> List[str]:  # Names of blank keys
        return [name for name in ("speechKey", "ttsKey", "llmKey") if not getattr(self, name).strip()]

    def __repr__(self) -> str:
        present = ", ".join(f"{name}={'set' if getattr(self, name) else 'unset'}" for name in ("speechKey", "ttsKey", "llmKey"))
        return f"Credentials({present})"

    __str__ = __repr__


class InterviewConfig(BaseModel):  # Documents and keys collected by the setup wizard
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    jobDescription: str
    resume: str
    coverLetter: str | None = None
    credentials: Credentials = Field(
        default_factory=Credentials,
        validation_alias=AliasChoices("credentials", "apiKeys"),
    )


class StrengthItem(BaseModel):  # Something the candidate did well
    title: str
    description: str
    moment: str = Field(validation_alias=AliasChoices("moment", "supportingMoment"))


class ImprovementItem(BaseModel):  # Area to work on with an actionable suggestion
    title: str
    description: str
    suggestion: str


class FeedbackReport(BaseModel):  # Terminal coaching report for a session
    strengths: List[StrengthItem] = Field(min_length=1)
    improvements: List[ImprovementItem] = Field(min_length=1)


__all__ = [
    "ConversationEntry",
    "Credentials",
    "FeedbackReport",
    "ImprovementItem",
    "InterviewConfig",
    "Speaker",
    "StrengthItem",
]
