"""LLM routing and dialogue flow configuration loaded from ``app_config.json``."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field, model_validator


class LlmRoute(BaseModel):
    """LLM endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=0, ge=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    enforce_json: bool = False


class PhaseRule(BaseModel):
    """Questioning heuristic applied while the exchange count sits in a range."""

    label: str
    min_exchanges: int = Field(default=0, ge=0)
    max_exchanges: int | None = Field(default=None, ge=1)
    guidance: str

    def matches(self, exchanges: int) -> bool:
        if exchanges < self.min_exchanges:
            return False
        return self.max_exchanges is None or exchanges < self.max_exchanges

    def describe(self) -> str:
        if self.max_exchanges is None:
            span = f"{self.min_exchanges}+ exchanges"
        elif self.min_exchanges == 0:
            span = f"fewer than {self.max_exchanges} exchanges"
        else:
            span = f"{self.min_exchanges}-{self.max_exchanges} exchanges"
        return f"If this is {self.label} in the interview ({span}), {self.guidance}"


def _default_phases() -> List[PhaseRule]:
    return [
        PhaseRule(label="early", max_exchanges=3, guidance="ask foundational questions"),
        PhaseRule(
            label="mid",
            min_exchanges=3,
            max_exchanges=8,
            guidance="dive deeper into skills, experience, and scenarios",
        ),
        PhaseRule(
            label="late",
            min_exchanges=8,
            guidance="ask closing questions and prepare to end",
        ),
    ]


class DialogueSettings(BaseModel):
    """Interview flow limits and prompt heuristics."""

    max_entries: int = Field(default=20, ge=1)
    sentinel: str = "INTERVIEW_COMPLETE"
    target_exchanges: str = "8-12"
    phases: List[PhaseRule] = Field(default_factory=_default_phases)

    @model_validator(mode="after")
    def _require_phases(self) -> "DialogueSettings":
        if not self.phases:
            raise ValueError("At least one phase rule is required")
        return self

    def phase_for(self, exchanges: int) -> PhaseRule:
        for rule in self.phases:
            if rule.matches(exchanges):
                return rule
        return self.phases[-1]


class AppConfig(BaseModel):
    """Application configuration root."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]
    dialogue: DialogueSettings = Field(default_factory=DialogueSettings)


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def route_for(cfg: AppConfig, target: str) -> LlmRoute:
    """Return the route bound to a single registry target."""

    if target not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{target}'")
    route_id = cfg.registry[target]
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing for '{target}'")
    return cfg.llm_routes[route_id]
