"""Markup stripping for text users write (reviews, promotions, RFQs, contact).

The web client renders this text, so no HTML survives storage: nh3 removes
every tag (and the content of script/style), then runs of spaces collapse.
Newlines are kept for multi-paragraph messages.
"""

import re

import nh3

_SPACES = re.compile(r"[ \t]+")


def strip_markup(value: str) -> str:
    if not value:
        return value
    return _SPACES.sub(" ", nh3.clean(value, tags=set(), attributes={})).strip()


def sanitize_text(value: str | None) -> str | None:
    """strip_markup for optional fields; None stays None."""
    return None if value is None else strip_markup(value)


def sanitize_tags(tags: list[str]) -> list[str]:
    """Clean each tag and drop those left empty."""
    return [tag for tag in (strip_markup(t) for t in tags) if tag]
