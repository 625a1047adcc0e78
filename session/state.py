from __future__ import annotations  # Application and interview state machines

from typing import Dict, Literal, Tuple

AppState = Literal["setup", "interviewing", "feedback"]
SessionStatus = Literal["starting", "active", "ending"]

APP_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "setup": ("interviewing",),
    "interviewing": ("feedback",),
    "feedback": (),
}

SESSION_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "starting": ("active", "ending"),
    "active": ("ending",),
    "ending": (),
}


class InvalidTransition(RuntimeError):  # State change not allowed from the current state
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move from '{current}' to '{target}'")
        self.current = current
        self.target = target


def check_transition(table: Dict[str, Tuple[str, ...]], current: str, target: str) -> None:
    if target not in table.get(current, ()):
        raise InvalidTransition(current, target)


__all__ = [
    "APP_TRANSITIONS",
    "AppState",
    "InvalidTransition",
    "SESSION_TRANSITIONS",
    "SessionStatus",
    "check_transition",
]
