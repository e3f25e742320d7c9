"""Unit tests for SignatureVerifier."""

import hashlib
import hmac
import json

import pytest

from jobhook.core.signature import (
    AuthError,
    ExpiredSignatureError,
    LengthMismatchError,
    MalformedHeaderError,
    MissingHeaderError,
    SignatureMismatchError,
    SignatureVerifier,
    parse_signature_header,
)

SECRET = "JLwe345A2Wjd45"
NOW = 1_700_000_000


@pytest.fixture
def verifier() -> SignatureVerifier:
    """Create a verifier with a fixed clock."""
    return SignatureVerifier(SECRET, clock=lambda: float(NOW))


@pytest.fixture
def payload() -> bytes:
    """Create a sample raw callback body."""
    return json.dumps(
        {
            "jobId": 5,
            "eventType": "JobAssigned",
            "jobName": "Open House at 123 Main St",
            "jobStatus": "Assigned",
            "guardianPhone": "1234567890",
        }
    ).encode("utf-8")


def _flip_hex(char: str) -> str:
    return "0" if char != "0" else "1"


class TestSigning:
    """Tests for signature construction."""

    def test_signed_string_is_timestamp_dot_body(self, verifier, payload):
        """Digest is HMAC-SHA256 over '<t>.<body>' with the shared secret."""
        expected = hmac.new(
            SECRET.encode(), f"{NOW}.".encode() + payload, hashlib.sha256
        ).hexdigest()

        assert verifier.compute_signature(payload, NOW) == expected

    def test_sign_builds_header(self, verifier, payload):
        header = verifier.sign(payload, NOW)

        assert header == f"t={NOW},s={verifier.compute_signature(payload, NOW)}"

    def test_sign_defaults_to_clock(self, verifier, payload):
        assert verifier.sign(payload).startswith(f"t={NOW},s=")

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            SignatureVerifier("")

    def test_non_positive_tolerance_rejected(self):
        with pytest.raises(ValueError):
            SignatureVerifier(SECRET, tolerance_seconds=0)


class TestVerify:
    """Tests for verification outcomes."""

    @pytest.mark.parametrize("skew", [-300, -1, 0, 1, 299, 300])
    def test_valid_signature_within_window(self, verifier, payload, skew):
        """Signatures within 300 seconds either side of now are accepted."""
        header = verifier.sign(payload, NOW + skew)

        verifier.verify(payload, header)

    def test_verify_uses_explicit_current_time(self, verifier, payload):
        header = verifier.sign(payload, 1000)

        verifier.verify(payload, header, current_time=1100)

    @pytest.mark.parametrize("skew", [301, -301, 3600])
    def test_expired_signature(self, verifier, payload, skew):
        """Replayed or far-future signatures fail with ExpiredSignatureError."""
        header = verifier.sign(payload, NOW - skew)

        with pytest.raises(ExpiredSignatureError):
            verifier.verify(payload, header)

    def test_custom_tolerance(self, payload):
        verifier = SignatureVerifier(SECRET, tolerance_seconds=10, clock=lambda: NOW)
        header = verifier.sign(payload, NOW - 11)

        with pytest.raises(ExpiredSignatureError):
            verifier.verify(payload, header)

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing_header(self, verifier, payload, header):
        with pytest.raises(MissingHeaderError):
            verifier.verify(payload, header)

    @pytest.mark.parametrize(
        "header",
        [
            "abcdef",
            "t=1700000000",
            "s=" + "a" * 64,
            "t=,s=" + "a" * 64,
            "t=1700000000,s=",
            "t=notanumber,s=" + "a" * 64,
        ],
    )
    def test_malformed_header(self, verifier, payload, header):
        with pytest.raises(MalformedHeaderError):
            verifier.verify(payload, header)

    def test_bare_hex_digest_is_not_accepted(self, verifier, payload):
        """Untimestamped digests over the bare body are refused."""
        bare = hmac.new(SECRET.encode(), payload, hashlib.sha256).hexdigest()

        with pytest.raises(MalformedHeaderError):
            verifier.verify(payload, bare)

    def test_length_mismatch(self, verifier, payload):
        header = f"t={NOW},s=abc123"

        with pytest.raises(LengthMismatchError):
            verifier.verify(payload, header)

    def test_header_parts_in_any_order_with_spaces(self, verifier, payload):
        digest = verifier.compute_signature(payload, NOW)

        verifier.verify(payload, f" s={digest} , t={NOW} ")

    def test_wrong_secret(self, verifier, payload):
        other = SignatureVerifier("another-secret", clock=lambda: NOW)

        with pytest.raises(SignatureMismatchError):
            verifier.verify(payload, other.sign(payload))

    def test_every_payload_byte_is_covered(self, verifier, payload):
        """Flipping any byte of the body invalidates the signature."""
        header = verifier.sign(payload, NOW)

        for index in range(len(payload)):
            tampered = bytearray(payload)
            tampered[index] ^= 0x01
            with pytest.raises(SignatureMismatchError):
                verifier.verify(bytes(tampered), header)

    def test_every_signature_char_is_covered(self, verifier, payload):
        """Changing any hex character of the signature invalidates it."""
        digest = verifier.compute_signature(payload, NOW)

        for index, char in enumerate(digest):
            tampered = digest[:index] + _flip_hex(char) + digest[index + 1 :]
            with pytest.raises(SignatureMismatchError):
                verifier.verify(payload, f"t={NOW},s={tampered}")

    def test_changed_timestamp_invalidates(self, verifier, payload):
        digest = verifier.compute_signature(payload, NOW)

        with pytest.raises(SignatureMismatchError):
            verifier.verify(payload, f"t={NOW + 1},s={digest}")

    @pytest.mark.parametrize(
        "timestamp_text",
        ["1_700_000_000", "+1700000000", "01700000000", " 1700000000"],
    )
    def test_timestamp_text_is_not_normalized(self, verifier, payload, timestamp_text):
        """A digest over the canonical timestamp does not cover other spellings."""
        digest = verifier.compute_signature(payload, NOW)

        with pytest.raises(AuthError):
            verifier.verify(payload, f"t={timestamp_text},s={digest}")

    def test_signs_timestamp_as_sent(self, verifier, payload):
        """Leading zeros in the header are part of the signed string."""
        digest = hmac.new(
            SECRET.encode(), b"01700000000." + payload, hashlib.sha256
        ).hexdigest()

        verifier.verify(payload, f"t=01700000000,s={digest}")

    def test_uppercase_hex_digest_accepted(self, verifier, payload):
        digest = verifier.compute_signature(payload, NOW)

        verifier.verify(payload, f"t={NOW},s={digest.upper()}")

    def test_mismatch_checked_before_expiry(self, verifier, payload):
        """A forged, stale signature is reported as a mismatch."""
        header = f"t={NOW - 10_000},s={'0' * 64}"

        with pytest.raises(SignatureMismatchError):
            verifier.verify(payload, header)

    def test_all_failures_are_auth_errors(self):
        for error in (
            MissingHeaderError,
            MalformedHeaderError,
            LengthMismatchError,
            SignatureMismatchError,
            ExpiredSignatureError,
        ):
            assert issubclass(error, AuthError)


class TestParseSignatureHeader:
    """Tests for header parsing."""

    def test_parse(self):
        assert parse_signature_header("t=12,s=ab") == ("12", "ab")

    def test_ignores_unknown_parts(self):
        assert parse_signature_header("v=1,t=12,s=ab") == ("12", "ab")

    def test_keeps_timestamp_text(self):
        assert parse_signature_header("t=0012,s=ab") == ("0012", "ab")

    @pytest.mark.parametrize("timestamp", ["1_700", "+1700", "-1700", "1700.5", "١٢"])
    def test_rejects_non_digit_timestamp(self, timestamp):
        with pytest.raises(MalformedHeaderError):
            parse_signature_header(f"t={timestamp},s=ab")
