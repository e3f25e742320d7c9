"""HMAC signature verification for partner callbacks.

The partner signs every callback with HMAC-SHA256 over the shared secret
and sends the result in the ``X-Signature`` header as::

    t=<unix seconds>,s=<hex digest>

The signed bytes are the timestamp, a dot, and the raw request body
exactly as received. A signature is accepted only when the digest
matches and the timestamp lies within the tolerance window of the
verifier's clock.

Only this timestamped format is accepted. A bare hex digest carries no
timestamp and cannot be checked against the replay window.
"""

import hashlib
import hmac
import re
import time
from collections.abc import Callable

DEFAULT_TOLERANCE_SECONDS = 300

_DIGEST_HEX_LENGTH = hashlib.sha256().digest_size * 2

_TIMESTAMP_PATTERN = re.compile(r"[0-9]+")


class AuthError(Exception):
    """Base class for callback authentication failures."""


class MissingHeaderError(AuthError):
    """The signature header was not sent."""


class MalformedHeaderError(AuthError):
    """The signature header could not be parsed into timestamp and digest."""


class LengthMismatchError(AuthError):
    """The provided digest does not have the length of a SHA-256 hex digest."""


class SignatureMismatchError(AuthError):
    """The provided digest does not match the recomputed one."""


class ExpiredSignatureError(AuthError):
    """The signature timestamp is outside the replay window."""


def parse_signature_header(header_value: str) -> tuple[str, str]:
    """Split a ``t=...,s=...`` header into its timestamp and digest.

    The timestamp is returned as the exact text sent, since that text is
    what the sender signed.

    Args:
        header_value: Raw header value.

    Returns:
        Tuple of (timestamp text, hex digest).

    Raises:
        MalformedHeaderError: If either part is missing, empty, or the
            timestamp is not a run of ASCII digits.
    """
    timestamp_part: str | None = None
    digest_part: str | None = None
    for part in header_value.split(","):
        part = part.strip()
        if part.startswith("t="):
            timestamp_part = part[2:]
        elif part.startswith("s="):
            digest_part = part[2:]

    if not timestamp_part or not digest_part:
        raise MalformedHeaderError("Invalid signature header format")

    if not _TIMESTAMP_PATTERN.fullmatch(timestamp_part):
        raise MalformedHeaderError("Invalid signature timestamp")

    return timestamp_part, digest_part


class SignatureVerifier:
    """Verifies and produces callback signatures for one shared secret."""

    def __init__(
        self,
        secret: str,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the verifier.

        Args:
            secret: Shared HMAC secret.
            tolerance_seconds: Maximum allowed distance between the signature
                timestamp and the current time.
            clock: Returns the current unix time; injectable for tests.

        Raises:
            ValueError: If the secret is empty or the tolerance is not positive.
        """
        if not secret:
            raise ValueError("secret must be a non-empty string")
        if tolerance_seconds <= 0:
            raise ValueError("tolerance_seconds must be positive")
        self._key = secret.encode("utf-8")
        self.tolerance_seconds = tolerance_seconds
        self.clock = clock

    def compute_signature(self, raw_payload: bytes, timestamp: int | str) -> str:
        """Return the hex HMAC-SHA256 of ``<timestamp>.<raw_payload>``.

        A string timestamp is signed as given, so header text such as
        ``0170`` is not normalized.
        """
        signed = str(timestamp).encode("ascii") + b"." + raw_payload
        return hmac.new(self._key, signed, hashlib.sha256).hexdigest()

    def sign(self, raw_payload: bytes, timestamp: int | None = None) -> str:
        """Build a complete signature header value for a payload.

        Args:
            raw_payload: Exact bytes that will be sent as the request body.
            timestamp: Unix seconds to sign with (default: now).

        Returns:
            Header value in ``t=<timestamp>,s=<hex>`` form.
        """
        if timestamp is None:
            timestamp = int(self.clock())
        return f"t={timestamp},s={self.compute_signature(raw_payload, timestamp)}"

    def verify(
        self,
        raw_payload: bytes,
        signature_header: str | None,
        current_time: float | None = None,
    ) -> None:
        """Verify a callback signature.

        Args:
            raw_payload: Raw request body bytes.
            signature_header: Value of the ``X-Signature`` header, if any.
            current_time: Unix time to check the replay window against
                (default: the verifier's clock).

        Raises:
            MissingHeaderError: If the header is absent or blank.
            MalformedHeaderError: If the header cannot be parsed.
            LengthMismatchError: If the digest has the wrong length.
            SignatureMismatchError: If the digest does not match.
            ExpiredSignatureError: If the timestamp is outside the window.
        """
        if signature_header is None or not signature_header.strip():
            raise MissingHeaderError("Missing signature header")

        timestamp_text, provided = parse_signature_header(signature_header)

        # Length and hex case are not secret-dependent
        if len(provided) != _DIGEST_HEX_LENGTH:
            raise LengthMismatchError("Signature length mismatch")

        expected = self.compute_signature(raw_payload, timestamp_text)
        if not hmac.compare_digest(
            provided.lower().encode("utf-8"), expected.encode("ascii")
        ):
            raise SignatureMismatchError("Invalid signature")

        now = self.clock() if current_time is None else current_time
        if abs(now - int(timestamp_text)) > self.tolerance_seconds:
            raise ExpiredSignatureError("Signature too old")
