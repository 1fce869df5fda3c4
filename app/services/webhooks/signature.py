"""
GitHub webhook signature check: HMAC-SHA256 of the raw body, hex-encoded and
prefixed "sha256=", compared in constant time. No secret configured means
every request fails.
"""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger("webhooks")

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_github_signature(body: bytes, signature_header: Optional[str], secret: Optional[str]) -> bool:
    if not secret:
        logger.warning("GITHUB_WEBHOOK_SECRET not configured, rejecting webhook")
        return False
    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_signature(body, secret)
    return hmac.compare_digest(signature_header.encode("utf-8"), expected.encode("utf-8"))
