from __future__ import annotations  # Re-export feedback synthesizer API

from .synthesizer import (
    FEEDBACK_KEY,
    FeedbackSynthesizer,
    cover_letter_block,
    fallback_report,
    render_conversation,
)

__all__ = [
    "FEEDBACK_KEY",
    "FeedbackSynthesizer",
    "cover_letter_block",
    "fallback_report",
    "render_conversation",
]
