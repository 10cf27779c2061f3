"""Text processing helpers."""

from __future__ import annotations

import re


WHITESPACE_RE = re.compile(r"\s+")
CAMEL_SPLIT_RE = re.compile(r"(?=[A-Z])")


def normalize(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def camel_parts(identifier: str) -> list[str]:
    """Split an identifier before every uppercase letter."""
    return [part for part in CAMEL_SPLIT_RE.split(identifier) if part]
