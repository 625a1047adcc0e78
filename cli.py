"""Command line entry point: run the API server or practice from the terminal."""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
import threading
from pathlib import Path
from typing import Mapping, Optional, Sequence

import uvicorn

from config import settings
from dialogue import build_orchestrator
from domain import InterviewConfig
from intake import CREDENTIAL_FIELDS, IntakeError, SetupWizard
from observability import configure_logging
from session import (
    DialogueBackend,
    HttpDialogueBackend,
    InterviewApp,
    InterviewSession,
    LocalDialogueBackend,
    render_entry,
    render_feedback,
    render_indicators,
    render_status,
    write_transcript,
)
from speech_capture import SpeechCaptureAdapter

END_COMMANDS = ("e", "end", "q", "quit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mock-interview", description="Voice mock interview coach")
    parser.add_argument("--log-level", default=None, help="Logging level for module loggers")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the interview API server")
    serve.add_argument("--host", default=settings.HOST)
    serve.add_argument("--port", type=int, default=settings.PORT)
    serve.add_argument("--reload", action="store_true")

    practice = commands.add_parser("practice", help="Run an interview with the local microphone")
    practice.add_argument("--job-description", required=True, type=Path, metavar="FILE")
    practice.add_argument("--resume", required=True, type=Path, metavar="FILE")
    practice.add_argument("--cover-letter", type=Path, metavar="FILE")
    practice.add_argument("--speech-key", help="Deepgram key (default: $DEEPGRAM_API_KEY)")
    practice.add_argument("--tts-key", help="Speechify key (default: $SPEECHIFY_API_KEY)")
    practice.add_argument("--llm-key", help="OpenAI key (default: $OPENAI_API_KEY)")
    practice.add_argument("--backend-url", help="Use a running API server instead of calling the model in-process")
    practice.add_argument("--export", type=Path, metavar="DIR", help="Write the transcript to DIR when done")
    return parser


def run_wizard(wizard: SetupWizard, args: argparse.Namespace, env: Mapping[str, str] = os.environ) -> InterviewConfig:
    """Walk the setup steps non-interactively from files, flags and environment."""

    wizard.update(
        jobDescription=args.job_description.read_text(encoding="utf-8"),
        resume=args.resume.read_text(encoding="utf-8"),
        coverLetter=args.cover_letter.read_text(encoding="utf-8") if args.cover_letter else "",
    )
    wizard.next()
    flags = {"speechKey": args.speech_key, "ttsKey": args.tts_key, "llmKey": args.llm_key}
    wizard.update(
        **{name: flags[name] or env.get(field.env_var, "") for name, field in CREDENTIAL_FIELDS.items()}
    )
    wizard.next()
    print(render_indicators(wizard.indicators()))
    config = wizard.next()
    if config is None:
        raise IntakeError("Setup did not complete")
    return config


class TerminalView:  # Prints what changed since the last session update
    def __init__(self) -> None:
        self._entries = 0
        self._notifications = 0
        self._status = ""

    def __call__(self, session: InterviewSession) -> None:
        for entry in session.history[self._entries:]:
            print(render_entry(entry))
        self._entries = len(session.history)
        for note in session.notifications[self._notifications:]:
            print(f"! {note.title}: {note.description}", file=sys.stderr)
        self._notifications = len(session.notifications)
        status = render_status(
            session.status,
            recording=session.is_recording,
            interviewer_speaking=session.interviewer_speaking,
            candidate_speaking=session.candidate_speaking,
        )
        if status != self._status:
            self._status = status
            print(f"-- {status}")


def start_controls(loop: asyncio.AbstractEventLoop) -> "asyncio.Queue[str]":
    """Read stdin lines on a daemon thread and hand them to the loop."""

    commands: asyncio.Queue[str] = asyncio.Queue()

    def _reader() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(commands.put_nowait, line.strip().lower())
        loop.call_soon_threadsafe(commands.put_nowait, "end")

    threading.Thread(target=_reader, name="stdin-controls", daemon=True).start()
    return commands


def build_backend(args: argparse.Namespace) -> DialogueBackend:
    if args.backend_url:
        return HttpDialogueBackend(args.backend_url)
    return LocalDialogueBackend(build_orchestrator(Path(settings.APP_CONFIG_PATH)))


async def practice(args: argparse.Namespace) -> int:
    app = InterviewApp()
    try:
        config = app.complete_setup(run_wizard(app.wizard, args))
    except IntakeError as exc:
        print(f"Setup incomplete: {exc}", file=sys.stderr)
        return 2

    session = InterviewSession(config, build_backend(args), SpeechCaptureAdapter(config.credentials.speechKey))
    session.subscribe(TerminalView())
    controls = start_controls(asyncio.get_running_loop())
    runner = asyncio.create_task(session.run())
    print("Press Enter to start or stop the microphone, type 'end' to finish the interview.")

    while not runner.done():
        command = asyncio.create_task(controls.get())
        done, _ = await asyncio.wait({command, runner}, return_when=asyncio.FIRST_COMPLETED)
        if command not in done:
            command.cancel()
            break
        if command.result() in END_COMMANDS:
            await session.end_interview()
        else:
            await session.toggle_recording()

    report = await runner
    app.complete_interview(report, session.history)
    print()
    print(render_feedback(report, app.summary()))
    if args.export:
        path = write_transcript(app.history, args.export)
        print(f"Transcript saved to {path}")
    return 0


def serve(args: argparse.Namespace) -> int:
    uvicorn.run("api_server:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    if args.command == "serve":
        return serve(args)
    try:
        return asyncio.run(practice(args))
    except OSError as exc:
        print(f"Unable to read input: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
