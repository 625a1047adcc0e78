"""Session presentation: app flow, live interview state and transcript export."""
from .app import InterviewApp
from .backend import BackendError, DialogueBackend, HttpDialogueBackend, LocalDialogueBackend
from .interview import (
    CONNECTION_ERROR_TITLE,
    INTERVIEW_ERROR_TEXT,
    INTERVIEW_ERROR_TITLE,
    OPENING_QUESTION,
    InterviewSession,
    Notification,
)
from .presenter import render_entry, render_feedback, render_indicators, render_status
from .state import InvalidTransition
from .transcript import (
    SessionSummary,
    export_transcript,
    format_entry,
    session_summary,
    transcript_filename,
    write_transcript,
)

__all__ = [
    "BackendError",
    "CONNECTION_ERROR_TITLE",
    "DialogueBackend",
    "HttpDialogueBackend",
    "INTERVIEW_ERROR_TEXT",
    "INTERVIEW_ERROR_TITLE",
    "InterviewApp",
    "InterviewSession",
    "InvalidTransition",
    "LocalDialogueBackend",
    "Notification",
    "OPENING_QUESTION",
    "SessionSummary",
    "export_transcript",
    "format_entry",
    "render_entry",
    "render_feedback",
    "render_indicators",
    "render_status",
    "session_summary",
    "transcript_filename",
    "write_transcript",
]
