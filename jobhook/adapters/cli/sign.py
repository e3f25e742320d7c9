"""Sign a callback payload the way the partner does, and optionally send it.

Prints the X-Signature header for a payload so it can be pasted into an
HTTP client, or POSTs the signed payload to a running receiver.

Usage:
    jobhook-sign                                 # sign the sample event
    jobhook-sign --payload event.json            # sign a file
    jobhook-sign --payload - < event.json        # sign stdin
    jobhook-sign --send http://localhost:3000/api/v1/job-callback
"""

import argparse
import json
import sys

import httpx
from pydantic import ValidationError

from jobhook.adapters.webhook.http_server import SIGNATURE_HEADER
from jobhook.adapters.webhook.receiver import SAMPLE_EVENT
from jobhook.config import load_settings
from jobhook.core.signature import SignatureVerifier


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--payload",
        default=None,
        help="JSON file to sign, '-' for stdin (default: built-in sample event)",
    )
    parser.add_argument(
        "--secret",
        default=None,
        help="Shared secret (default: CALLBACK_SECRET from settings)",
    )
    parser.add_argument(
        "--timestamp",
        type=int,
        default=None,
        help="Unix timestamp to sign with (default: now)",
    )
    parser.add_argument(
        "--send",
        metavar="URL",
        default=None,
        help="POST the signed payload to this URL",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Request timeout in seconds when sending (default 10)",
    )
    return parser.parse_args(argv)


def read_payload(source: str | None) -> bytes:
    """Read the exact bytes to sign.

    Raises:
        OSError: If the file cannot be read.
    """
    if source is None:
        return json.dumps(SAMPLE_EVENT.to_payload()).encode("utf-8")
    if source == "-":
        return sys.stdin.buffer.read()
    with open(source, "rb") as f:
        return f.read()


def send(url: str, body: bytes, signature_header: str, timeout: float) -> int:
    try:
        response = httpx.post(
            url,
            content=body,
            headers={
                "Content-Type": "application/json",
                SIGNATURE_HEADER: signature_header,
            },
            timeout=timeout,
        )
    except httpx.RequestError as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
        return 1

    print(f"HTTP {response.status_code}")
    print(response.text)
    return 0 if response.is_success else 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        body = read_payload(args.payload)
    except OSError as exc:
        print(f"Cannot read payload: {exc}", file=sys.stderr)
        return 1

    secret = args.secret
    if not secret:
        try:
            secret = load_settings().callback_secret
        except ValidationError as exc:
            print(f"Invalid settings: {exc}", file=sys.stderr)
            return 1
    signature_header = SignatureVerifier(secret).sign(body, args.timestamp)

    if args.send:
        return send(args.send, body, signature_header, args.timeout)

    print(f"{SIGNATURE_HEADER}: {signature_header}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
