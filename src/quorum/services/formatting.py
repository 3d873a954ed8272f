"""Plain-text rendering helpers for notification descriptions."""

from __future__ import annotations

import html
import re

_FENCED_CODE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE = re.compile(r"`([^`]*)`")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HTML_TAG = re.compile(r"<[^>]+>")
_HEADING = re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^\s{0,3}>\s?", re.MULTILINE)
_LIST_MARKER = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+", re.MULTILINE)
_RULE = re.compile(r"^\s*(?:[-*_]\s*){3,}$", re.MULTILINE)
_EMPHASIS = re.compile(r"(?<!\w)(\*\*|__|\*|_|~~)(.+?)\1(?!\w)")
_WHITESPACE = re.compile(r"\s+")

ELLIPSIS = "..."


def remove_markdown_formatting(text: str | None) -> str:
    """Return ``text`` with markdown syntax removed and whitespace collapsed."""
    if not text:
        return ""
    plain = _FENCED_CODE.sub(" ", text)
    plain = _INLINE_CODE.sub(r"\1", plain)
    plain = _IMAGE.sub(r"\1", plain)
    plain = _LINK.sub(r"\1", plain)
    plain = _HTML_TAG.sub(" ", plain)
    plain = _RULE.sub(" ", plain)
    plain = _HEADING.sub("", plain)
    plain = _BLOCKQUOTE.sub("", plain)
    plain = _LIST_MARKER.sub("", plain)
    plain = _EMPHASIS.sub(r"\2", plain)
    return _WHITESPACE.sub(" ", html.unescape(plain)).strip()


def truncate(text: str, length: int) -> str:
    """Cut ``text`` so the result, ellipsis included, is at most ``length`` chars."""
    if len(text) <= length:
        return text
    if length <= len(ELLIPSIS):
        return text[:length]
    return text[: length - len(ELLIPSIS)].rstrip() + ELLIPSIS
