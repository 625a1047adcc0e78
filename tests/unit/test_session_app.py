from datetime import date, datetime

import pytest

from domain import ConversationEntry, Credentials, InterviewConfig
from feedback import fallback_report
from intake import IntakeError
from session import (
    InterviewApp,
    InvalidTransition,
    export_transcript,
    render_feedback,
    session_summary,
    transcript_filename,
    write_transcript,
)


def test_app_walks_setup_interview_feedback(interview_config, make_history) -> None:
    app = InterviewApp()
    assert app.state == "setup"

    app.complete_setup(interview_config)
    assert app.state == "interviewing"
    assert app.config is interview_config

    app.complete_interview(fallback_report(), make_history(4))
    assert app.state == "feedback"
    assert app.summary().questions == 2


def test_app_rejects_out_of_order_transitions(interview_config) -> None:
    app = InterviewApp()

    with pytest.raises(InvalidTransition):
        app.complete_interview(fallback_report(), [])

    app.complete_setup(interview_config)
    with pytest.raises(InvalidTransition):
        app.complete_setup(interview_config)


def test_setup_needs_every_credential() -> None:
    app = InterviewApp()
    config = InterviewConfig(
        jobDescription="JD",
        resume="CV",
        credentials=Credentials(speechKey="dg-123456789012", llmKey="sk-123456789012"),
    )

    with pytest.raises(IntakeError):
        app.complete_setup(config)
    assert app.state == "setup"


def test_setup_uses_completed_wizard() -> None:
    app = InterviewApp()
    with pytest.raises(InvalidTransition):
        app.complete_setup()

    app.wizard.update(jobDescription="JD", resume="CV")
    app.wizard.next()
    app.wizard.update(speechKey="dg-123456789012", ttsKey="sp-123456789012", llmKey="sk-123456789012")
    app.wizard.next()
    app.wizard.next()

    config = app.complete_setup()
    assert config.jobDescription == "JD"


def test_restart_clears_session_data(interview_config, make_history) -> None:
    app = InterviewApp()
    app.complete_setup(interview_config)
    app.complete_interview(fallback_report(), make_history(3))

    app.restart()

    assert app.state == "setup"
    assert app.config is None
    assert app.feedback is None
    assert app.history == []
    assert app.wizard.step == "documents"


def test_export_yields_one_block_per_entry(make_history) -> None:
    history = make_history(5)

    text = export_transcript(history)

    blocks = text.split("\n\n")
    assert len(blocks) == 5
    assert blocks[0] == "[09:00:00] INTERVIEWER: interviewer message 0"
    assert blocks[1] == "[09:01:00] CANDIDATE: candidate message 1"
    for block, entry in zip(blocks, history):
        assert block.startswith("[")
        assert f"] {entry.speaker.upper()}: " in block


def test_export_of_empty_history_is_empty() -> None:
    assert export_transcript([]) == ""


def test_transcript_filename_uses_iso_date() -> None:
    assert transcript_filename(date(2024, 5, 1)) == "interview-transcript-2024-05-01.txt"


def test_write_transcript_creates_file(tmp_path, make_history) -> None:
    path = write_transcript(make_history(2), tmp_path / "out", day=date(2024, 5, 1))

    assert path.name == "interview-transcript-2024-05-01.txt"
    assert path.read_text(encoding="utf-8").count("\n\n") == 1


def test_summary_counts_and_rounds_duration() -> None:
    history = [
        ConversationEntry(speaker="interviewer", message="Q1", timestamp=datetime(2024, 5, 1, 9, 0, 0)),
        ConversationEntry(speaker="candidate", message="A1", timestamp=datetime(2024, 5, 1, 9, 3, 0)),
        ConversationEntry(speaker="interviewer", message="Q2", timestamp=datetime(2024, 5, 1, 9, 7, 40)),
    ]

    summary = session_summary(history)

    assert summary.duration_minutes == 8
    assert summary.questions == 2
    assert summary.responses == 1
    assert session_summary([]).duration_minutes == 0


def test_render_feedback_lists_both_sections(make_history) -> None:
    text = render_feedback(fallback_report(), session_summary(make_history(3)))

    assert "Participated in Mock Interview" in text
    assert "Suggestion: Schedule regular mock interviews" in text
    assert "Questions: 2 | Responses: 1" in text
