# src/privacy/scrubber.py — v1
"""Default PII scrubber for free-text ticket fields.

Regex based: e-mail addresses and North American phone numbers are
replaced by placeholders. Any ``Callable[[str], str]`` that is pure and
total can be injected instead (e.g. a DLP service wrapper).
"""

from __future__ import annotations

import re
from typing import Any, Callable

Scrubber = Callable[[str], str]

EMAIL_PLACEHOLDER = "[REDACTED_EMAIL]"
PHONE_PLACEHOLDER = "[REDACTED_PHONE]"

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.\w+")
_PHONE_RE = re.compile(r"(?:\+\d{1,2}\s?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}")

# Keys whose string values are treated as free text wherever they appear.
FREE_TEXT_FIELDS: frozenset[str] = frozenset({"subject", "description", "message"})


def scrub_pii(text: str | None) -> str:
    """Replace e-mail addresses and phone numbers with placeholders."""
    if not text:
        return ""
    scrubbed = _EMAIL_RE.sub(EMAIL_PLACEHOLDER, text)
    return _PHONE_RE.sub(PHONE_PLACEHOLDER, scrubbed)


def scrub_payload(value: Any, scrubber: Scrubber = scrub_pii) -> Any:
    """Recursively scrub free-text fields in a JSON-like payload.

    Returns a new structure; the input is never mutated.
    """
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if key in FREE_TEXT_FIELDS and isinstance(item, str):
                out[key] = scrubber(item)
            else:
                out[key] = scrub_payload(item, scrubber)
        return out
    if isinstance(value, list):
        return [scrub_payload(item, scrubber) for item in value]
    return value
