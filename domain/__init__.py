"""Domain models shared by intake, dialogue, feedback and session layers."""
from .models import (
    ConversationEntry,
    Credentials,
    FeedbackReport,
    ImprovementItem,
    InterviewConfig,
    Speaker,
    StrengthItem,
)

__all__ = [
    "ConversationEntry",
    "Credentials",
    "FeedbackReport",
    "ImprovementItem",
    "InterviewConfig",
    "Speaker",
    "StrengthItem",
]
