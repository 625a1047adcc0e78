from __future__ import annotations  # Document and credential field definitions

from typing import Dict, Literal

from pydantic import BaseModel, Field

DocumentName = Literal["jobDescription", "resume", "coverLetter"]
CredentialName = Literal["speechKey", "ttsKey", "llmKey"]

MIN_KEY_LENGTH = 10  # Keys at or below this length do not look valid


class DocumentField(BaseModel):  # Free-text document with an advisory word limit
    name: DocumentName
    label: str
    max_words: int = Field(ge=1)
    required: bool = True


class CredentialField(BaseModel):  # Third-party API key collected at setup
    name: CredentialName
    label: str
    provider: str
    env_var: str


DOCUMENT_FIELDS: Dict[str, DocumentField] = {
    "jobDescription": DocumentField(name="jobDescription", label="Job Description", max_words=650),
    "resume": DocumentField(name="resume", label="Resume", max_words=500),
    "coverLetter": DocumentField(name="coverLetter", label="Cover Letter", max_words=400, required=False),
}

CREDENTIAL_FIELDS: Dict[str, CredentialField] = {
    "speechKey": CredentialField(
        name="speechKey", label="Speech-to-Text", provider="Deepgram", env_var="DEEPGRAM_API_KEY"
    ),
    "ttsKey": CredentialField(
        name="ttsKey", label="Text-to-Speech", provider="Speechify", env_var="SPEECHIFY_API_KEY"
    ),
    "llmKey": CredentialField(
        name="llmKey", label="Language Model", provider="OpenAI", env_var="OPENAI_API_KEY"
    ),
}


def count_words(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split())


def is_over_limit(field: str, text: str | None) -> bool:
    """True when the text has more words than the field allows."""

    return count_words(text) > DOCUMENT_FIELDS[field].max_words


def key_looks_valid(key: str | None) -> bool:  # Advisory length check only
    return bool(key) and len(key) > MIN_KEY_LENGTH


__all__ = [
    "CREDENTIAL_FIELDS",
    "CredentialField",
    "CredentialName",
    "DOCUMENT_FIELDS",
    "DocumentField",
    "DocumentName",
    "MIN_KEY_LENGTH",
    "count_words",
    "is_over_limit",
    "key_looks_valid",
]
