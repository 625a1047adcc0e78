from __future__ import annotations  # Plain-text rendering for the terminal client

from typing import Iterable, List

from domain import ConversationEntry, FeedbackReport
from intake import FieldStatus

from .transcript import SessionSummary, format_entry


def render_indicators(statuses: Iterable[FieldStatus]) -> str:
    lines: List[str] = []
    for status in statuses:
        if status.max_words is not None:
            flag = "  (over limit)" if status.over_limit else ""
            lines.append(f"{status.label}: {status.words}/{status.max_words} words{flag}")
        elif status.looks_valid is not None:
            lines.append(f"{status.label}: {'looks valid' if status.looks_valid else 'check key'}")
    return "\n".join(lines)


def render_entry(entry: ConversationEntry) -> str:
    return format_entry(entry)


def render_status(status: str, *, recording: bool, interviewer_speaking: bool, candidate_speaking: bool) -> str:
    parts = [f"status={status}", "mic=on" if recording else "mic=off"]
    if interviewer_speaking:
        parts.append("interviewer speaking")
    if candidate_speaking:
        parts.append("you are speaking")
    return " | ".join(parts)


def render_feedback(report: FeedbackReport, summary: SessionSummary) -> str:
    lines = [
        "Interview Complete!",
        f"Duration: {summary.duration_minutes} min | Questions: {summary.questions} | Responses: {summary.responses}",
        "",
        "Strengths",
    ]
    for item in report.strengths:
        lines.append(f"  + {item.title}: {item.description}")
        lines.append(f'    "{item.moment}"')
    lines.append("")
    lines.append("Areas for Improvement")
    for item in report.improvements:
        lines.append(f"  - {item.title}: {item.description}")
        lines.append(f"    Suggestion: {item.suggestion}")
    return "\n".join(lines)


__all__ = ["render_entry", "render_feedback", "render_indicators", "render_status"]
