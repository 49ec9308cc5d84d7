"""Heuristic deliverability check for candidate email addresses.

Used to gate outbound-communication actions (invite, talent pool, reject,
offer) before any state is written.
"""

import re

# Addresses known to bounce
KNOWN_INVALID_EMAILS = frozenset({
    "nonexistent.user.582013@gmail.com",
    "deletedaccount.test.990199@gmail.com",
})

SUSPICIOUS_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"nonexistent",
        r"deleted(account)?",
        r"test[0-9]+",
        r"fake",
        r"example\.",
        r"invalid",
        r"notreal",
        r"donotexist",
        r"dummy",
    )
]

EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NON_EXISTENT_EMAIL = "non_existent_email"


def is_likely_invalid_email(email: str | None) -> bool:
    """Return True when the address is empty, a placeholder, or malformed."""
    if not email:
        return True

    normalized = email.strip().lower()
    if normalized in KNOWN_INVALID_EMAILS:
        return True

    if any(pattern.search(normalized) for pattern in SUSPICIOUS_PATTERNS):
        return True

    return not EMAIL_SHAPE.match(normalized)
