"""Structured session event logging for the interview coach.

Every event goes to stderr as one human-readable line. When file logs are
enabled, the same event is also written as JSON to ``LOG_FILE`` and as a
human line to its ``-human.log`` sibling, both size-rotated.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from pathlib import Path
from typing import Any, Callable

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/interview.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Fields surfaced on the human-readable line; everything else is JSON only
HUMAN_KEYS = ("status", "previous", "route", "outcome", "entries", "ms", "error")
# Never written anywhere
REDACTED_KEYS = ("speechKey", "ttsKey", "llmKey", "api_key", "credentials", "apiKeys")

_logger = logging.getLogger("interview")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


def _is_json(record: logging.LogRecord) -> bool:
    return getattr(record, "is_json", False) is True


def _is_human(record: logging.LogRecord) -> bool:
    return not _is_json(record)


def _attach(handler: logging.Handler, fmt: str, keep: Callable[[logging.LogRecord], bool]) -> None:
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    handler.addFilter(keep)
    _logger.addHandler(handler)


def _rotating(path: Path) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)


def _ensure_handlers() -> None:
    if _logger.handlers:
        return
    # stderr keeps stdout free for the CLI transcript
    _attach(logging.StreamHandler(stream=sys.stderr), HUMAN_FORMAT, _is_human)
    if not ENABLE_FILE_LOGS:
        return

    json_path = Path(LOG_FILE)
    json_path.parent.mkdir(parents=True, exist_ok=True)
    human_path = json_path.with_name(f"{json_path.stem}-human.log")
    _attach(_rotating(json_path), "%(message)s", _is_json)
    _attach(_rotating(human_path), HUMAN_FORMAT, _is_human)


def configure_logging(level: str | None = None) -> None:
    """Route module loggers to stderr with the same line format as session events."""

    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format=HUMAN_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
    )


def _format_human(evt: dict[str, Any]) -> str:
    extras = "".join(f" {key}={evt[key]}" for key in HUMAN_KEYS if key in evt)
    return f"session={evt.get('session_id')} kind={evt.get('kind')}{extras}"


def build_event(kind: str, session_id: str, **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "session_id": session_id,
    }
    payload.update({key: value for key, value in fields.items() if key not in REDACTED_KEYS})
    return payload


def _handle(message: str, *, is_json: bool) -> None:
    record = _logger.makeRecord(_logger.name, logging.INFO, "", 0, message, (), None)
    record.is_json = is_json  # type: ignore[attr-defined]
    _logger.handle(record)


def log_event(kind: str, session_id: str, **fields: Any) -> None:
    """Emit one session event; credential fields are dropped before formatting."""

    _ensure_handlers()
    payload = build_event(kind, session_id, **fields)
    _handle(_format_human(payload), is_json=False)
    if ENABLE_FILE_LOGS:
        _handle(json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


__all__ = ["build_event", "configure_logging", "log_event"]
