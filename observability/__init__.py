"""Observability utilities for the interview coach."""
from .logger import build_event, configure_logging, log_event
from .tracing import span

__all__ = ["build_event", "configure_logging", "log_event", "span"]
