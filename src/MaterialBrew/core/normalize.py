"""Filename canonicalization for keyword matching."""

import re
from pathlib import PurePath
from typing import Iterable

from ..config import VENDOR_TOKENS

_SEPARATORS = re.compile(r"[ \-_.]")


def _strip_extension(name: str) -> str:
    base = PurePath(str(name).replace("\\", "/")).name
    stem, dot, ext = base.rpartition(".")
    if dot and stem:
        return stem
    return base


def normalize_name(name: str, extra_tokens: Iterable[str] = ()) -> str:
    """Return a lowercase, separator-free token string for substring matching.

    Vendor, UDIM and resolution tags are removed repeatedly until nothing
    changes, since removing one tag can expose another
    (``u1kdim`` -> ``udim`` -> ``""``). The result is a fixed point, so the
    function is idempotent.
    """
    tokens = [t.lower() for t in VENDOR_TOKENS]
    # Separators are gone from the name by the time tokens are matched.
    extra = (_SEPARATORS.sub("", t.lower()) for t in extra_tokens if t)
    tokens.extend(t for t in extra if t)

    s = _SEPARATORS.sub("", _strip_extension(name).lower())
    while True:
        previous = s
        s = s.replace("colour", "color")
        for token in tokens:
            s = s.replace(token, "")
        if s == previous:
            return s
