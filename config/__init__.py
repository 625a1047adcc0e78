"""Configuration package for the mock interview services."""
from .routes import (
    AppConfig,
    DialogueSettings,
    LlmRoute,
    PhaseRule,
    load_config,
    route_for,
)
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "DialogueSettings",
    "LlmRoute",
    "PhaseRule",
    "load_config",
    "route_for",
    "Settings",
    "settings",
]
