"""Input checks shared by the signup endpoints."""

from __future__ import annotations

import re

# Loose RFC 5322 shape. Real deliverability is not checked.
_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)


def validate_email(email: str | None) -> str | None:
    """Return an error message if *email* is missing or malformed, else ``None``."""
    if not email or not email.strip():
        return "Email is required."
    email = email.strip()
    if not _EMAIL_RE.match(email):
        return f'"{email}" does not look like a valid email address.'
    return None


def clean(value: str | None) -> str:
    """Strip a free-text field; ``None`` becomes an empty string."""
    return (value or "").strip()
