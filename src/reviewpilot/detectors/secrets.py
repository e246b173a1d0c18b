"""Secret-likeness scoring for string literals.

Strategies, strongest first:
    1. Provider prefix (``ghp_``, ``AKIA``, ``sk_live_`` ...)
    2. Base64 payload that decodes to credential-looking text
    3. Long hex token with non-trivial entropy
    4. High entropy value held by a security-named variable
    5. Very high entropy on its own (low confidence)
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from ..math.entropy import calculate_entropy

SECRET_PREFIXES = (
    "sk-", "pk-", "sk_live_", "pk_live_", "sk_test_", "pk_test_",
    "ghp_", "gho_", "ghu_", "ghs_", "ghr_",  # GitHub
    "AKIA", "ABIA", "ACCA", "ASIA",  # AWS
    "xoxb-", "xoxp-", "xoxo-", "xapp-",  # Slack
    "eyJ",  # JWT
    "SG.",  # SendGrid
    "sq0",  # Square
    "sk_live", "rk_live",  # Stripe
)

SAFE_PATTERNS = (
    re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE),
    re.compile(r"^[0-9]+$"),
    re.compile(r"^(true|false|null|undefined|none|yes|no)$", re.IGNORECASE),
    re.compile(r"^https?://"),
    re.compile(r"^[\w.-]+@[\w.-]+$"),
    re.compile(r"^\$\{.*\}$"),
    re.compile(r"^<.*>$"),
)

# Identifier names that suggest the value is a credential
SECURITY_NAME_RE = re.compile(r"password|passwd|secret|token|key|auth|cred|api.?key", re.IGNORECASE)

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]{16,}={0,2}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
_CREDENTIAL_SEPARATOR_RE = re.compile(r"[:=]")


@dataclass(frozen=True)
class SecretMatch:
    is_secret: bool
    reason: Optional[str] = None
    confidence: Optional[str] = None  # "high" | "medium" | "low"


@dataclass(frozen=True)
class Base64Result:
    is_base64: bool
    decoded: Optional[str] = None
    is_secret: bool = False


NO_SECRET = SecretMatch(is_secret=False)


def is_safe_value(text: str) -> bool:
    """True for UUIDs, numbers, booleans, URLs, e-mails and placeholders."""
    return any(p.search(text) for p in SAFE_PATTERNS)


def is_high_entropy(text: str, threshold: float = 4.5, min_length: int = 20) -> bool:
    if not text or len(text) < min_length:
        return False
    if is_safe_value(text):
        return False
    return calculate_entropy(text) > threshold


def has_secret_prefix(text: str) -> bool:
    if not text:
        return False
    return text.startswith(SECRET_PREFIXES)


def detect_base64_secret(text: str) -> Base64Result:
    """Decode a base64-looking token and judge whether the payload is a credential."""
    if not text or len(text) < 16:
        return Base64Result(is_base64=False)

    candidate = text.strip()
    if not _BASE64_RE.match(candidate):
        return Base64Result(is_base64=False)

    padded = candidate + "=" * (-len(candidate) % 4)
    try:
        raw = base64.b64decode(padded)
    except (binascii.Error, ValueError):
        return Base64Result(is_base64=False)

    decoded = raw.decode("utf-8", errors="replace")
    if not decoded:
        return Base64Result(is_base64=True)

    printable = sum(1 for ch in decoded if " " <= ch <= "~")
    if printable / len(decoded) < 0.5:
        return Base64Result(is_base64=True)

    looks_like_secret = bool(_CREDENTIAL_SEPARATOR_RE.search(decoded)) or is_high_entropy(
        decoded, threshold=3.5, min_length=8
    )
    return Base64Result(is_base64=True, decoded=decoded, is_secret=looks_like_secret)


def is_hex_secret(text: str) -> bool:
    """Even-length hex tokens of 32+ chars with entropy above 3 bits."""
    if not text or len(text) < 32:
        return False
    if not _HEX_RE.match(text) or len(text) % 2 != 0:
        return False
    return calculate_entropy(text) > 3.0


def detect_secret(value: str, context: str = "") -> SecretMatch:
    """Combine all strategies for a literal ``value`` held by ``context``.

    Args:
        value: The literal (not the key)
        context: Variable or key name the value is assigned to

    Returns:
        SecretMatch with a reason and a high/medium/low confidence
    """
    if not value or len(value) < 8:
        return NO_SECRET

    if has_secret_prefix(value):
        return SecretMatch(True, "Known secret prefix detected", "high")

    if detect_base64_secret(value).is_secret:
        return SecretMatch(True, "Base64-encoded credential detected", "high")

    if is_hex_secret(value):
        return SecretMatch(True, "Hex-encoded secret detected", "medium")

    if SECURITY_NAME_RE.search(context or "") and is_high_entropy(value, 3.5, 12):
        return SecretMatch(True, "High-entropy value in security-sensitive variable", "high")

    if is_high_entropy(value, 5.0, 24):
        return SecretMatch(True, "High-entropy string (potential secret)", "low")

    return NO_SECRET
