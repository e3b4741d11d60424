"""Sanitization helpers for user-supplied strings and files.

Everything typed by a user (notes, vendor descriptions, file names) passes
through here before it is rendered or sent over the network.

HTML is cleaned with ``nh3``: tags and attributes that are not explicitly
allowed are dropped, the content of ``<script>``/``<style>`` is discarded,
and link attributes keep only http(s) and mailto URLs.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

import nh3

from utils.patterns import UNSAFE_FILENAME_CHARS

DEFAULT_ALLOWED_TAGS = ("b", "i", "em", "strong", "a", "p", "br")
DEFAULT_ALLOWED_ATTRIBUTES = ("href", "target")
ALLOWED_URL_SCHEMES = frozenset({"http", "https", "mailto"})

_DROP_CONTENT_TAGS = frozenset({"script", "style", "template", "iframe", "object", "noscript"})

MAX_FILE_NAME_LENGTH = 255


def sanitize_html(
    dirty: str,
    allowed_tags=DEFAULT_ALLOWED_TAGS,
    allowed_attributes=DEFAULT_ALLOWED_ATTRIBUTES,
    strip_tags: bool = False,
) -> str:
    """Return *dirty* with every non-allow-listed tag and attribute removed.

    Args:
        dirty: Untrusted markup.
        allowed_tags: Tag names to keep.
        allowed_attributes: Attribute names to keep on allowed tags. Event
            handler attributes (``on*``) are always dropped.
        strip_tags: Drop every tag and keep only the text content.

    Returns:
        Safe markup (or escaped plain text when *strip_tags* is set).
    """
    if not dirty:
        return ""
    tags = set() if strip_tags else set(allowed_tags)
    attributes = {a for a in allowed_attributes if not a.startswith("on")}
    return nh3.clean(
        dirty,
        tags=tags,
        clean_content_tags=set(_DROP_CONTENT_TAGS - tags),
        attributes={"*": attributes} if tags else {},
        url_schemes=set(ALLOWED_URL_SCHEMES),
        link_rel=None,
    )


def sanitize_text(text: str) -> str:
    """Strip all markup from *text*, keeping the text content."""
    return sanitize_html(text, strip_tags=True)


def validate_file_type(content_type: str | None, allowed_types) -> bool:
    """Return True when the MIME type is one of *allowed_types*."""
    return bool(content_type) and content_type in allowed_types


def validate_file_size(size_bytes: int, max_size_mb: float) -> bool:
    """Return True when *size_bytes* does not exceed *max_size_mb* megabytes."""
    return size_bytes <= max_size_mb * 1024 * 1024


def sanitize_file_name(file_name: str) -> str:
    """Remove filesystem-hostile characters and cap the length at 255."""
    return UNSAFE_FILENAME_CHARS.sub("", file_name)[:MAX_FILE_NAME_LENGTH]


def escape_regexp(value: str) -> str:
    """Escape *value* for literal use inside a regular expression."""
    return re.escape(value)


def validate_url(url: str) -> bool:
    """Return True for well-formed http(s) URLs with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
