from __future__ import annotations

import re
from typing import Any


_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"(?<!\d)(?:\+?\d{1,3}[-.\s]?)?(?:\d{2,4}[-.\s]?\d{3,4}[-.\s]?\d{4})(?!\d)")
_LONG_DIGIT_RE = re.compile(r"\b\d{12,19}\b")

_BEARER_RE = re.compile(r"(?i)\bBearer\s+[A-Za-z0-9\-._~+/]+=*")
_JWT_RE = re.compile(r"\b[A-Za-z0-9\-_]{20,}\.[A-Za-z0-9\-_]{20,}\.[A-Za-z0-9\-_]{20,}\b")
_GOOGLE_API_KEY_RE = re.compile(r"\bAIza[0-9A-Za-z\-_]{35}\b")
_QUERY_KEY_RE = re.compile(r"(?i)([?&]key=)[^&\s]+")

# Free-text fields that carry what a student wrote; never persisted to logs.
_SENSITIVE_KEYS = {"note", "triggers", "content", "message", "reason", "text"}


def mask_pii_text(text: str) -> str:
    if not text:
        return text
    out = text
    out = _EMAIL_RE.sub("[REDACTED_EMAIL]", out)
    out = _PHONE_RE.sub("[REDACTED_PHONE]", out)
    out = _LONG_DIGIT_RE.sub("[REDACTED_NUMBER]", out)
    return out


def redact_secrets_text(text: str) -> str:
    if not text:
        return text
    out = text
    out = _BEARER_RE.sub("Bearer [REDACTED_TOKEN]", out)
    out = _JWT_RE.sub("[REDACTED_JWT]", out)
    out = _GOOGLE_API_KEY_RE.sub("[REDACTED_GOOGLE_API_KEY]", out)
    out = _QUERY_KEY_RE.sub(r"\1[REDACTED_KEY]", out)
    return out


def sanitize_for_log(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return redact_secrets_text(mask_pii_text(value))[:1200]
    if isinstance(value, list):
        return [sanitize_for_log(v) for v in value]
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)[:128]
            out[key] = "[REDACTED]" if key.lower() in _SENSITIVE_KEYS else sanitize_for_log(v)
        return out
    if isinstance(value, (int, float, bool)):
        return value
    return str(value)[:1200]
