from __future__ import annotations  # Top-level setup -> interviewing -> feedback flow

import logging
from typing import List, Optional, Sequence

from domain import ConversationEntry, FeedbackReport, InterviewConfig
from intake import DOCUMENT_FIELDS, IntakeError, SetupWizard

from .state import APP_TRANSITIONS, AppState, InvalidTransition, check_transition
from .transcript import SessionSummary, export_transcript, session_summary


logger = logging.getLogger(__name__)


class InterviewApp:
    """Holds everything one practice session produces, in memory only."""

    def __init__(self) -> None:
        self.state: AppState = "setup"
        self.wizard = SetupWizard()
        self.config: Optional[InterviewConfig] = None
        self.feedback: Optional[FeedbackReport] = None
        self.history: List[ConversationEntry] = []

    def complete_setup(self, config: Optional[InterviewConfig] = None) -> InterviewConfig:
        check_transition(APP_TRANSITIONS, self.state, "interviewing")
        config = config or self.wizard.completed
        if config is None:
            raise InvalidTransition(self.state, "interviewing")
        missing = [
            name
            for name, definition in DOCUMENT_FIELDS.items()
            if definition.required and not (getattr(config, name) or "").strip()
        ]
        missing.extend(config.credentials.missing())
        if missing:
            raise IntakeError(f"Setup incomplete, missing: {', '.join(missing)}")
        self.config = config
        self.state = "interviewing"
        logger.info("Setup complete, interview starting")
        return config

    def complete_interview(self, feedback: FeedbackReport, history: Sequence[ConversationEntry]) -> None:
        check_transition(APP_TRANSITIONS, self.state, "feedback")
        self.feedback = feedback
        self.history = list(history)
        self.state = "feedback"
        logger.info("Interview finished entries=%d", len(self.history))

    def restart(self) -> None:  # Drops config, keys, conversation and feedback
        self.state = "setup"
        self.wizard = SetupWizard()
        self.config = None
        self.feedback = None
        self.history = []

    def summary(self) -> SessionSummary:
        return session_summary(self.history)

    def transcript(self) -> str:
        return export_transcript(self.history)


__all__ = ["InterviewApp"]
