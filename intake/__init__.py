"""Setup intake: documents, credentials and the wizard that collects them."""
from .fields import (
    CREDENTIAL_FIELDS,
    DOCUMENT_FIELDS,
    CredentialField,
    DocumentField,
    count_words,
    is_over_limit,
    key_looks_valid,
)
from .wizard import STEPS, FieldStatus, IntakeError, SetupDraft, SetupWizard

__all__ = [
    "CREDENTIAL_FIELDS",
    "CredentialField",
    "DOCUMENT_FIELDS",
    "DocumentField",
    "FieldStatus",
    "IntakeError",
    "STEPS",
    "SetupDraft",
    "SetupWizard",
    "count_words",
    "is_over_limit",
    "key_looks_valid",
]
