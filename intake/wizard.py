from __future__ import annotations  # Three-step setup wizard producing an InterviewConfig

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel

from domain import Credentials, InterviewConfig

from .fields import CREDENTIAL_FIELDS, DOCUMENT_FIELDS, count_words, is_over_limit, key_looks_valid


logger = logging.getLogger(__name__)

WizardStep = Literal["documents", "api-keys", "ready"]
STEPS: List[WizardStep] = ["documents", "api-keys", "ready"]


class IntakeError(ValueError):  # Wizard asked to advance with incomplete input
    pass


class SetupDraft(BaseModel):  # Mutable form state behind the wizard
    jobDescription: str = ""
    resume: str = ""
    coverLetter: str = ""
    speechKey: str = ""
    ttsKey: str = ""
    llmKey: str = ""


class FieldStatus(BaseModel):  # Advisory indicator shown next to a field
    name: str
    label: str
    words: Optional[int] = None
    max_words: Optional[int] = None
    over_limit: bool = False
    looks_valid: Optional[bool] = None


class SetupWizard:  # documents -> api-keys -> ready
    def __init__(self, draft: Optional[SetupDraft] = None) -> None:
        self.draft = draft or SetupDraft()
        self._index = 0
        self._completed: Optional[InterviewConfig] = None

    @property
    def step(self) -> WizardStep:
        return STEPS[self._index]

    @property
    def step_number(self) -> int:  # 1-based, for "Step n of 3"
        return self._index + 1

    @property
    def completed(self) -> Optional[InterviewConfig]:
        return self._completed

    def update(self, **values: str) -> None:
        for name, value in values.items():
            if name not in SetupDraft.model_fields:
                raise IntakeError(f"Unknown setup field '{name}'")
            setattr(self.draft, name, value)

    def missing(self) -> List[str]:
        """Required fields still blank on the current step."""

        if self.step == "documents":
            return [
                name
                for name, definition in DOCUMENT_FIELDS.items()
                if definition.required and not getattr(self.draft, name).strip()
            ]
        if self.step == "api-keys":
            return [name for name in CREDENTIAL_FIELDS if not getattr(self.draft, name).strip()]
        return []

    def can_proceed(self) -> bool:
        return not self.missing()

    def next(self) -> Optional[InterviewConfig]:
        """Advance one step; on the last step, freeze and return the config."""

        missing = self.missing()
        if missing:
            raise IntakeError(f"Cannot leave step '{self.step}', missing: {', '.join(missing)}")
        if self._index < len(STEPS) - 1:
            self._index += 1
            logger.debug("Setup wizard advanced to %s", self.step)
            return None
        self._completed = self.build_config()
        logger.info("Setup wizard completed")
        return self._completed

    def back(self) -> None:
        if self._index > 0:
            self._index -= 1

    def build_config(self) -> InterviewConfig:
        draft = self.draft
        cover = draft.coverLetter.strip()
        return InterviewConfig(
            jobDescription=draft.jobDescription,
            resume=draft.resume,
            coverLetter=draft.coverLetter if cover else None,
            credentials=Credentials(
                speechKey=draft.speechKey.strip(),
                ttsKey=draft.ttsKey.strip(),
                llmKey=draft.llmKey.strip(),
            ),
        )

    def indicators(self) -> List[FieldStatus]:
        statuses: List[FieldStatus] = []
        for name, definition in DOCUMENT_FIELDS.items():
            text = getattr(self.draft, name)
            statuses.append(
                FieldStatus(
                    name=name,
                    label=definition.label,
                    words=count_words(text),
                    max_words=definition.max_words,
                    over_limit=is_over_limit(name, text),
                )
            )
        for name, definition in CREDENTIAL_FIELDS.items():
            statuses.append(
                FieldStatus(
                    name=name,
                    label=f"{definition.label} ({definition.provider})",
                    looks_valid=key_looks_valid(getattr(self.draft, name)),
                )
            )
        return statuses


__all__ = ["FieldStatus", "IntakeError", "STEPS", "SetupDraft", "SetupWizard", "WizardStep"]
