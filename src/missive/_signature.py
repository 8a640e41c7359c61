"""
Webhook signature helpers.

Missive signs webhook payloads with HMAC-SHA256 of the raw body, keyed by the
webhook secret, and sends the hex digest in the `X-Hook-Signature` header.
"""

import hashlib
import hmac

HEADER_SIGNATURE = "X-Hook-Signature"


class Signature:
    """Generate and verify webhook signatures."""

    @staticmethod
    def generate(payload: str | bytes, secret: str | bytes) -> str:
        """Return the hex HMAC-SHA256 of `payload`."""
        return hmac.new(_to_bytes(secret), _to_bytes(payload), hashlib.sha256).hexdigest()

    @staticmethod
    def is_valid(payload: str | bytes, header: str | None, secret: str | bytes) -> bool:
        """
        Check a received signature in constant time.

        A `sha256=` prefix on the header is accepted. Missing headers are invalid.
        """
        if not header:
            return False
        received = header.removeprefix("sha256=")
        expected = Signature.generate(payload, secret)
        return hmac.compare_digest(expected.encode("ascii"), received.encode("utf-8"))


def _to_bytes(value: str | bytes) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")
