"""
Input validation and sanitization utilities.
Protects the HTML email bodies against markup/script injection.
"""

import re
from typing import Optional

from src.shared.contact.schemas import ContactRequest
from src.shared.errors import InvalidEmailFormat, MissingRequiredField

# Loose shape check only: something@something.something without whitespace
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

REQUIRED_FIELDS = ("name", "email", "message")

# Ampersand first so entities produced by later substitutions are not re-escaped
HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_HTML_ESCAPE_RE = re.compile("[&<>\"'/]")


def escape_html(text: Optional[str]) -> str:
    """
    Escape text for safe embedding in HTML.

    Args:
        text: Untrusted input (None is treated as empty)

    Returns:
        Text with & < > " ' / replaced by their entities
    """
    if not text:
        return ""
    return _HTML_ESCAPE_RE.sub(lambda match: HTML_ESCAPES[match.group(0)], text)


def validate_submission(submission: ContactRequest) -> None:
    """
    Check required fields and email shape.

    Raises:
        MissingRequiredField: name, email or message is absent or empty
        InvalidEmailFormat: email does not look like an address
    """
    for field_name in REQUIRED_FIELDS:
        value = getattr(submission, field_name)
        if not value:
            raise MissingRequiredField()

    if not EMAIL_PATTERN.match(submission.email):
        raise InvalidEmailFormat()


def sanitize_submission(submission: ContactRequest) -> ContactRequest:
    """Return a copy with every present field HTML-escaped; absent optionals stay None."""
    return ContactRequest(
        name=escape_html(submission.name),
        email=escape_html(submission.email),
        message=escape_html(submission.message),
        phone=escape_html(submission.phone) if submission.phone else None,
        company=escape_html(submission.company) if submission.company else None,
        service=escape_html(submission.service) if submission.service else None,
    )
