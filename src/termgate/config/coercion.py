"""
Coercion of raw environment strings into typed field values.

Each function returns the coerced value, or None when the input is not
acceptable. None means "leave the field as it is"; these helpers never raise.
Integer parsing follows Go's strconv rules: no surrounding whitespace and
64-bit range limits.
"""

from __future__ import annotations

import re
from typing import List, Optional

_TRUE_VALUES = frozenset({"true", "on"})
_FALSE_VALUES = frozenset({"false", "off"})

_INT_PATTERN = re.compile(r"[+-]?[0-9]+", re.ASCII)
# Unsigned literals must start with a digit; prefixes and underscores are checked by int().
_UINT_PATTERN = re.compile(r"[0-9][0-9A-Za-z_]*", re.ASCII)
_LEGACY_OCTAL_PATTERN = re.compile(r"0[0-9]+", re.ASCII)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT64_LIMIT = 1 << 64


def parse_flag(value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def parse_int(value: str) -> Optional[int]:
    if not _INT_PATTERN.fullmatch(value):
        return None
    num = int(value, 10)
    if num < _INT64_MIN or num > _INT64_MAX:
        return None
    return num


def parse_uint(value: str) -> Optional[int]:
    """
    Accepts decimal, 0x/0o/0b prefixed literals and leading-zero octal (`010` is 8).
    """
    if not _UINT_PATTERN.fullmatch(value):
        return None
    try:
        if _LEGACY_OCTAL_PATTERN.fullmatch(value):
            num = int(value, 8)
        else:
            num = int(value, 0)
    except ValueError:
        return None
    if num >= _UINT64_LIMIT:
        return None
    return num


def parse_list(value: str) -> List[str]:
    """
    Split a comma-separated list.

    Items are whitespace-trimmed and empty items dropped, so `"a,,b"` gives
    `["a", "b"]` and `""` gives `[]`.
    """
    return [item.strip() for item in value.split(",") if item.strip()]
