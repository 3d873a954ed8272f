"""Mention (``@name``) extraction from raw post, answer and comment text."""

from __future__ import annotations

import re
from collections.abc import Iterable

# ``@alice`` or a full entity reference such as ``@user:default/alice``.
MENTION_PATTERN = re.compile(r"(?<![\w@])@((?:[A-Za-z0-9_.-]+:)?(?:[A-Za-z0-9_.-]+/)?[A-Za-z0-9_.-]+)")

DEFAULT_USER_PREFIX = "user:default/"


def mention_to_user_ref(token: str) -> str:
    """Expand a bare name into a user reference; full references are kept."""
    token = token.rstrip(".")
    if ":" in token:
        return token
    if "/" in token:
        return f"user:{token}"
    return f"{DEFAULT_USER_PREFIX}{token}"


def extract_mentions(texts: Iterable[str | None]) -> set[str]:
    refs: set[str] = set()
    for text in texts:
        for token in MENTION_PATTERN.findall(text or ""):
            ref = mention_to_user_ref(token)
            if not ref.endswith("/"):
                refs.add(ref)
    return refs
