"""
modon/sanitize.py

Input sanitization for user-submitted text (lead forms, search terms).
Regex-based cleaning: strips markup, removes common XSS vectors, normalizes
emails, phone numbers and URLs. Parameterized queries remain the SQL defense.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlparse

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_BLOCK = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "`": "&#x60;",
    "=": "&#x3D;",
}
_HTML_ESCAPE_CHARS = re.compile(r"[&<>\"'`=/]")

# (pattern, replacement) applied in order
_XSS_PATTERNS = [
    (re.compile(r"javascript:", re.IGNORECASE), ""),
    (re.compile(r"vbscript:", re.IGNORECASE), ""),
    (re.compile(r"data:", re.IGNORECASE), ""),
    (re.compile(r"on\w+\s*=", re.IGNORECASE), ""),
    (re.compile(r"expression\s*\(", re.IGNORECASE), ""),
    (re.compile(r"url\s*\(\s*['\"]?\s*javascript", re.IGNORECASE), "url("),
    (re.compile(r"eval\s*\(", re.IGNORECASE), ""),
    (re.compile(r"new\s+Function\s*\(", re.IGNORECASE), ""),
    (re.compile(r"(setTimeout|setInterval)\s*\(\s*['\"`]", re.IGNORECASE), r"\1("),
]

_EMAIL = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
_PHONE_STRIP = re.compile(r"[^\d+\-() ]")


def strip_html(value: str) -> str:
    """Remove script/style blocks and tags; leftover angle brackets are escaped."""
    if not value or not isinstance(value, str):
        return ""
    result = _SCRIPT_BLOCK.sub("", value)
    result = _STYLE_BLOCK.sub("", result)
    result = _TAG.sub("", result)
    # Decode common entities, then re-escape brackets so nothing re-forms a tag
    for entity, char in (("&lt;", "<"), ("&gt;", ">"), ("&amp;", "&"),
                         ("&quot;", '"'), ("&#x27;", "'"), ("&#x2F;", "/")):
        result = result.replace(entity, char)
    return result.replace("<", "&lt;").replace(">", "&gt;")


def escape_html(value: str) -> str:
    if not value or not isinstance(value, str):
        return ""
    return _HTML_ESCAPE_CHARS.sub(lambda m: _HTML_ESCAPES[m.group(0)], value)


def remove_xss_patterns(value: str) -> str:
    if not value or not isinstance(value, str):
        return ""
    for pattern, replacement in _XSS_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def sanitize_input(
    value: Any,
    *,
    strip: bool = True,
    escape: bool = True,
    remove_xss: bool = True,
    trim: bool = True,
    max_length: Optional[int] = None,
) -> str:
    """
    Comprehensive cleaning for free-text form fields.

    Non-strings and empty values become "". Escaping only applies when tags
    are not stripped (fields that keep some formatting).
    """
    if not value or not isinstance(value, str):
        return ""

    result = value.strip() if trim else value
    if remove_xss:
        result = remove_xss_patterns(result)
    if strip:
        result = strip_html(result)
    elif escape:
        result = escape_html(result)
    if max_length and len(result) > max_length:
        result = result[:max_length]
    return result


def sanitize_object(
    data: Dict[str, Any],
    *,
    exclude_fields: Iterable[str] = (),
    max_string_length: int = 10000,
) -> Dict[str, Any]:
    """Recursively sanitize every string inside a dict (lists and nested dicts included)."""
    excluded = set(exclude_fields)

    def clean(value: Any) -> Any:
        if isinstance(value, str):
            return sanitize_input(value, max_length=max_string_length)
        if isinstance(value, list):
            return [clean(item) for item in value]
        if isinstance(value, dict):
            return sanitize_object(value, exclude_fields=excluded, max_string_length=max_string_length)
        return value

    return {key: (value if key in excluded else clean(value)) for key, value in data.items()}


def sanitize_email(email: Any) -> Optional[str]:
    """Lower-cased, trimmed address, or None when it does not look like an email."""
    if not email or not isinstance(email, str):
        return None
    cleaned = email.strip().lower()
    if not _EMAIL.match(cleaned):
        return None
    if ".." in cleaned or cleaned.startswith(".") or ".@" in cleaned:
        return None
    return cleaned


def sanitize_phone(phone: Any) -> str:
    """Keep digits, +, -, parentheses and spaces."""
    if not phone or not isinstance(phone, str):
        return ""
    return _PHONE_STRIP.sub("", phone).strip()


def sanitize_url(url: Any) -> Optional[str]:
    """http(s) and site-relative URLs only; anything else is None."""
    if not url or not isinstance(url, str):
        return None
    trimmed = url.strip()
    lowered = trimmed.lower()

    if lowered.startswith(("javascript:", "vbscript:", "data:", "file:")):
        return None
    if trimmed.startswith("/"):
        return trimmed
    if not lowered.startswith(("http://", "https://")):
        return None

    parsed = urlparse(trimmed)
    if not parsed.netloc:
        return None
    return trimmed
