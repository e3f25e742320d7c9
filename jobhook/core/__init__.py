"""Core domain logic for the jobhook callback receiver.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    Acknowledgment,
    CallbackEvent,
    CallbackValidationError,
    JobEventType,
    JobSummary,
    LedgerSummary,
    StoredCallbackRecord,
)
from .signature import (
    AuthError,
    ExpiredSignatureError,
    LengthMismatchError,
    MalformedHeaderError,
    MissingHeaderError,
    SignatureMismatchError,
    SignatureVerifier,
)

__all__ = [
    "Acknowledgment",
    "AuthError",
    "CallbackEvent",
    "CallbackValidationError",
    "ExpiredSignatureError",
    "JobEventType",
    "JobSummary",
    "LedgerSummary",
    "LengthMismatchError",
    "MalformedHeaderError",
    "MissingHeaderError",
    "SignatureMismatchError",
    "SignatureVerifier",
    "StoredCallbackRecord",
]
