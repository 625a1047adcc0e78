from __future__ import annotations  # Transcript export and feedback screen statistics

from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel

from domain import ConversationEntry


class SessionSummary(BaseModel):  # Numbers shown alongside the feedback report
    duration_minutes: int
    questions: int
    responses: int


def format_entry(entry: ConversationEntry) -> str:
    return f"[{entry.timestamp.strftime('%H:%M:%S')}] {entry.speaker.upper()}: {entry.message}"


def export_transcript(history: Sequence[ConversationEntry]) -> str:  # One block per entry, blank line between
    return "\n\n".join(format_entry(entry) for entry in history)


def transcript_filename(day: Optional[date] = None) -> str:
    return f"interview-transcript-{(day or date.today()).isoformat()}.txt"


def write_transcript(history: Sequence[ConversationEntry], directory: Path, *, day: Optional[date] = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / transcript_filename(day)
    path.write_text(export_transcript(history), encoding="utf-8")
    return path


def session_summary(history: Sequence[ConversationEntry]) -> SessionSummary:
    duration = 0
    if history:
        elapsed = history[-1].timestamp - history[0].timestamp
        duration = round(elapsed.total_seconds() / 60)
    return SessionSummary(
        duration_minutes=duration,
        questions=sum(1 for entry in history if entry.speaker == "interviewer"),
        responses=sum(1 for entry in history if entry.speaker == "candidate"),
    )


__all__ = [
    "SessionSummary",
    "export_transcript",
    "format_entry",
    "session_summary",
    "transcript_filename",
    "write_transcript",
]
