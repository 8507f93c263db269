"""Masking of credentials and personal data in log output.

Login bodies, bearer tokens and user emails pass through the portal's
request handling; none of them may reach a log file in clear text.
"""

from __future__ import annotations

import re
from typing import Any

MASK = "***MASKED***"

# Group 1 of each pattern is the key part that is kept.
_KEY_VALUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'(["\']?password["\']?\s*[:=]\s*)["\']?[^"\'\s,}\]]+["\']?', re.IGNORECASE),
    re.compile(r'(["\']?password_hash["\']?\s*[:=]\s*)["\']?[^"\'\s,}\]]+["\']?', re.IGNORECASE),
    re.compile(
        r'(["\']?(?:session[_-]?|access[_-]?)?token["\']?\s*[:=]\s*)["\']?[a-zA-Z0-9_\-\.]+["\']?',
        re.IGNORECASE,
    ),
    re.compile(r"(bearer\s+)[a-zA-Z0-9_\-\.]+", re.IGNORECASE),
)

_EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

SENSITIVE_KEYWORDS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "authorization",
        "credential",
    }
)


def _mask_email(match: re.Match[str]) -> str:
    return f"{match.group(1)[:2]}***@{match.group(2)}"


def mask_sensitive_string(text: str) -> str:
    """Mask passwords, tokens and the local part of emails in ``text``."""
    if not text:
        return text

    result = text
    for pattern in _KEY_VALUE_PATTERNS:
        result = pattern.sub(r"\g<1>" + MASK, result)
    return _EMAIL_PATTERN.sub(_mask_email, result)


def is_sensitive_key(key: str) -> bool:
    lower_key = key.lower()
    return any(keyword in lower_key for keyword in SENSITIVE_KEYWORDS)


def mask_dict(data: dict[str, Any], depth: int = 0, max_depth: int = 10) -> dict[str, Any]:
    """Recursively mask sensitive values in a dictionary.

    Args:
        data: Dictionary to mask
        depth: Current recursion depth
        max_depth: Depth at which nested values are returned untouched

    Returns:
        A new dictionary with sensitive values replaced by ``MASK``
    """
    if depth >= max_depth:
        return data

    result: dict[str, Any] = {}
    for key, value in data.items():
        if is_sensitive_key(str(key)):
            result[key] = MASK
        elif isinstance(value, dict):
            result[key] = mask_dict(value, depth + 1, max_depth)
        elif isinstance(value, list):
            result[key] = [
                mask_dict(item, depth + 1, max_depth) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = mask_sensitive_string(value)
        else:
            result[key] = value
    return result
