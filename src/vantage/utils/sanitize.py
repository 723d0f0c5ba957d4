"""Error message sanitization to prevent credential leakage."""

from __future__ import annotations

import os
import re


def sanitize_error(message: str) -> str:
    """Redact tokens, key-bearing query strings and home paths from an error."""
    if not message:
        return message

    sanitized = message
    sanitized = re.sub(r"Bearer\s+\S+", "Bearer [REDACTED]", sanitized)
    sanitized = re.sub(r"Authorization:\s*\S+", "Authorization: [REDACTED]", sanitized, flags=re.IGNORECASE)
    sanitized = re.sub(r"(x-)?api-key:\s*\S+", lambda m: f"{m.group(1) or ''}api-key: [REDACTED]", sanitized,
                       flags=re.IGNORECASE)
    sanitized = re.sub(r"([?&](?:token|api_key|apikey|access_token)=)[^&\s'\"]+", r"\1[REDACTED]", sanitized,
                       flags=re.IGNORECASE)

    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    return sanitized
