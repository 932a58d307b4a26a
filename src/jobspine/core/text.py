"""Text normalization shared by the directory lookup and the resolver."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_name(value: str | None) -> str:
    """Trim and collapse internal whitespace; ``None`` becomes ``""``."""
    return _WHITESPACE.sub(" ", str(value or "").strip())


__all__ = ["normalize_name"]
