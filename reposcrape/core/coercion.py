from __future__ import annotations

import logging
import re
from typing import Dict, List, Mapping, Optional

from .models import RepoDetails

logger = logging.getLogger(__name__)

# Declared kind of every RepoDetails field, keyed by lower-cased field name.
FIELD_STR = "str"
FIELD_STR_LIST = "str_list"
FIELD_U32_LIST = "u32_list"

FIELD_KINDS: Dict[str, str] = {
    "project": FIELD_STR,
    "main": FIELD_STR,
    "title": FIELD_STR,
    "font": FIELD_STR_LIST,
    "color": FIELD_U32_LIST,
    "keywords": FIELD_STR_LIST,
    "languages": FIELD_STR_LIST,
    "technology": FIELD_STR_LIST,
    "children": FIELD_STR,
    "status": FIELD_STR,
    "description": FIELD_STR,
}

_U32_MAX = 0xFFFFFFFF
_DEC_RE = re.compile(r"\+?[0-9]+")
_HEX_RE = re.compile(r"\+?[0-9a-fA-F]+")


def split_list(value: str) -> List[str]:
    """Split a comma separated value, trimming tokens and dropping empty ones."""

    return [token.strip() for token in value.split(",") if token.strip()]


def parse_u32(token: str) -> Optional[int]:
    """Parse a token as base-10, falling back to base-16 with an optional ``#``.

    Returns ``None`` when neither reading yields a value that fits in 32 bits.
    """

    if _DEC_RE.fullmatch(token):
        number = int(token, 10)
        if number <= _U32_MAX:
            return number

    digits = token[1:] if token.startswith("#") else token
    if _HEX_RE.fullmatch(digits):
        number = int(digits, 16)
        if number <= _U32_MAX:
            return number
    return None


def _try_set_str(details: RepoDetails, key: str, value: str) -> bool:
    if FIELD_KINDS.get(key) != FIELD_STR:
        return False
    setattr(details, key, value)
    return True


def _try_set_str_list(details: RepoDetails, key: str, tokens: List[str]) -> bool:
    if not tokens or FIELD_KINDS.get(key) != FIELD_STR_LIST:
        return False
    setattr(details, key, list(tokens))
    return True


def _try_set_u32_list(details: RepoDetails, key: str, tokens: List[str]) -> bool:
    numbers = [n for n in (parse_u32(t) for t in tokens) if n is not None]
    if not numbers or FIELD_KINDS.get(key) != FIELD_U32_LIST:
        return False
    setattr(details, key, numbers)
    return True


def set_detail(details: RepoDetails, key: str, value: str) -> bool:
    """Assign a raw annotation onto ``details``; return True if a field was set.

    Interpretations are tried in order and the first one that fits the
    field's declared type wins: plain string, list of strings, list of
    unsigned 32-bit integers.
    """

    nkey = key.lower()
    if _try_set_str(details, nkey, value):
        return True

    tokens = split_list(value)
    if _try_set_str_list(details, nkey, tokens):
        return True

    return _try_set_u32_list(details, nkey, tokens)


def build_details(metadata: Mapping[str, str], source: str = "") -> Optional[RepoDetails]:
    """Coerce an extracted metadata map into ``RepoDetails``.

    Returns ``None`` if no field could be populated. Keys that cannot be
    assigned are logged and skipped.
    """

    details = RepoDetails()
    updated = False
    for key, value in metadata.items():
        if set_detail(details, key, value):
            updated = True
        else:
            logger.warning("Failed to set %s=%r for %s", key, value, source or "<unknown>")
    return details if updated else None
