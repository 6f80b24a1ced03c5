"""Natural-order string comparison for file names.

Embedded digit runs compare by magnitude ("page2" before "page10"),
letters compare case- and accent-insensitively.
"""

import functools
import re
import unicodedata
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

_DIGITS = re.compile(r"(\d+)")


def _fold(text: str) -> str:
    """Case-fold and strip combining accents."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def natural_key(text: str) -> tuple:
    """Sort key alternating text and integer segments.

    ``re.split`` with a capturing group always yields text at even
    positions and digit runs at odd positions, so keys of different
    strings compare position by position without type clashes.
    """
    parts = _DIGITS.split(_fold(text))
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def natural_compare(a: str, b: str) -> int:
    """Compare two strings in natural order, returning -1, 0 or 1."""
    key_a, key_b = natural_key(a), natural_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def natural_sort(items: Iterable[T], key: Callable[[T], str]) -> list[T]:
    """Stable natural sort of items by a string key."""
    return sorted(items, key=functools.cmp_to_key(lambda a, b: natural_compare(key(a), key(b))))
