"""
Text cleanup applied to every extracted string.
"""
from __future__ import annotations

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")

# Unicode major categories that survive cleanup: letters, numbers, punctuation.
_KEPT_CATEGORIES = frozenset("LNP")


def _is_kept(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch)[0] in _KEPT_CATEGORIES


def cleanup(text: str) -> str:
    """Drop symbols and control characters, collapse whitespace, trim.

    Idempotent: ``cleanup(cleanup(s)) == cleanup(s)``.
    """
    kept = "".join(ch for ch in text if _is_kept(ch))
    return _WHITESPACE.sub(" ", kept).strip()
