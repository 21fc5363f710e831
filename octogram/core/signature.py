"""GitHub webhook signature (X-Hub-Signature-256) validation."""

from __future__ import annotations

import hashlib
import hmac
import re
from enum import Enum

from octogram.utils.logging import get_logger

log = get_logger(__name__)

SIGNATURE_PREFIX = "sha256="

_SIGNATURE_RE = re.compile(r"sha256=([0-9a-f]{64})")


class SignatureStatus(str, Enum):
    DISABLED = "disabled"  # no secret configured
    MISSING = "missing"
    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"  # digest could not be computed

    @property
    def accepted(self) -> bool:
        return self in (SignatureStatus.DISABLED, SignatureStatus.VALID)


def compute_signature(secret: str, body: bytes) -> str:
    """Lowercase hex HMAC-SHA256 of the raw body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def constant_time_equals(a: str, b: str) -> bool:
    """Compare two ASCII strings without exiting early on the first difference.

    The length check may short-circuit: the digest length is fixed and public.
    """
    left = a.encode("ascii")
    right = b.encode("ascii")
    if len(left) != len(right):
        return False
    return hmac.compare_digest(left, right)


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Validate a GitHub ``sha256=<hex>`` signature header against the body.

    Headers that are not ``sha256=`` followed by 64 lowercase hex characters
    are rejected before any digest is computed. Errors from the digest
    computation propagate; see ``check_signature`` for the fail-closed wrapper.
    """
    if not signature_header:
        return False
    match = _SIGNATURE_RE.fullmatch(signature_header)
    if match is None:
        return False
    expected = compute_signature(secret, body)
    return constant_time_equals(expected, match.group(1))


def check_signature(
    secret: str | None, body: bytes, signature_header: str | None
) -> SignatureStatus:
    """Apply the delivery policy for the configured secret.

    No secret means verification is disabled; a configured secret requires a
    valid header. Exceptions fail closed as ERROR, kept apart from INVALID so
    the caller can answer with a server error instead of 403.
    """
    if not secret:
        return SignatureStatus.DISABLED
    if not signature_header:
        return SignatureStatus.MISSING
    try:
        valid = verify_signature(secret, body, signature_header)
    except Exception:
        log.exception("signature_verification_error")
        return SignatureStatus.ERROR
    return SignatureStatus.VALID if valid else SignatureStatus.INVALID
