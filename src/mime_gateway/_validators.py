"""Shared validation utilities for header-bound values and addresses."""

import re

from email_validator import EmailNotValidError, validate_email

_HEADER_UNSAFE_RE = re.compile(r"[\r\n]")


def is_header_safe(value: str) -> bool:
    """Return True if ``value`` contains no carriage return or line feed."""
    return _HEADER_UNSAFE_RE.search(value) is None


def is_valid_email_address(address: str) -> bool:
    """Return True if ``address`` is a syntactically valid bare email address.

    Display-name forms such as ``Alice <alice@example.com>`` are rejected.
    No DNS lookups are performed.
    """
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
