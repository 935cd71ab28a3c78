"""Subdomain naming rules shared with the Needle server.

Custom subdomains a user may reserve are 3-30 characters, start with a
lowercase letter, and contain only lowercase letters, digits and single
hyphens (never leading, trailing or doubled).
"""

from __future__ import annotations

import re

MIN_CUSTOM_LENGTH = 3
MAX_CUSTOM_LENGTH = 30

_CUSTOM_PATTERN = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)*$")


def is_valid_custom(subdomain: str) -> bool:
    """Return True if ``subdomain`` is acceptable as a user-chosen name."""
    if not MIN_CUSTOM_LENGTH <= len(subdomain) <= MAX_CUSTOM_LENGTH:
        return False
    return _CUSTOM_PATTERN.match(subdomain) is not None
