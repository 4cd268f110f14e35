"""HMAC signing and verification of webhook payloads."""

import hashlib
import hmac
import json
import re
import secrets
from typing import Any

from webhook_relay.logging.config import get_logger

logger = get_logger(__name__)

SIGNATURE_PATTERN = re.compile(r"[0-9a-f]{64}")


class HmacSigner:
    """
    Signs payloads with HMAC-SHA256 over a canonical JSON serialization.

    Keys are sorted at every depth so logically equal payloads produce the
    same signature regardless of field order, in any process.
    """

    @staticmethod
    def serialize(payload: Any) -> bytes:
        """
        Canonical byte serialization of a payload.

        String payloads are used verbatim; anything else is encoded as
        compact JSON with sorted keys.

        Args:
            payload: JSON value to serialize

        Returns:
            UTF-8 bytes that are signed and sent as the request body
        """
        if isinstance(payload, str):
            return payload.encode("utf-8")
        return json.dumps(
            payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")

    def sign(self, payload: Any, secret: str) -> str:
        """
        Compute the signature of a payload.

        Args:
            payload: JSON value to sign
            secret: Subscription secret

        Returns:
            Lowercase hex HMAC-SHA256 digest
        """
        return hmac.new(
            secret.encode("utf-8"), self.serialize(payload), hashlib.sha256
        ).hexdigest()

    def verify(self, payload: Any, signature: str | None, secret: str | None) -> bool:
        """
        Check a signature in constant time.

        Never raises: a missing or malformed signature simply fails. Only
        the lowercase hex form produced by ``sign`` is accepted.

        Args:
            payload: JSON value that was signed
            signature: Hex signature to check
            secret: Subscription secret

        Returns:
            True if the signature matches
        """
        if not signature or not secret:
            return False
        if not isinstance(signature, str) or not SIGNATURE_PATTERN.fullmatch(signature):
            logger.debug("Signature is not 64 lowercase hex characters")
            return False
        return hmac.compare_digest(signature, self.sign(payload, secret))

    @staticmethod
    def generate_secret() -> str:
        """
        Generate a new subscription secret.

        Returns:
            64-character hex string (256 random bits)
        """
        return secrets.token_hex(32)
