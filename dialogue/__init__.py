from __future__ import annotations  # Re-export dialogue public API

from .models import InterviewTurnRequest, NextTurn, TurnResult
from .orchestrator import (
    NEXT_QUESTION_KEY,
    DialogueError,
    DialogueOrchestrator,
    build_orchestrator,
    count_exchanges,
)

__all__ = [
    "DialogueError",
    "DialogueOrchestrator",
    "InterviewTurnRequest",
    "NEXT_QUESTION_KEY",
    "NextTurn",
    "TurnResult",
    "build_orchestrator",
    "count_exchanges",
]
