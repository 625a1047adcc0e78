"""Timing helper that reports elapsed time as a session event."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from .logger import log_event


@contextmanager
def span(kind: str, session_id: str, **fields: Any) -> Iterator[Dict[str, Any]]:
    """Yield a dict the caller can annotate; logged with ``ms`` on exit."""

    info: Dict[str, Any] = dict(fields)
    start = time.time()
    try:
        yield info
    except Exception as exc:
        info.setdefault("outcome", "error")
        info["error"] = type(exc).__name__
        raise
    finally:
        info["ms"] = int((time.time() - start) * 1000)
        log_event(kind, session_id, **info)


__all__ = ["span"]
