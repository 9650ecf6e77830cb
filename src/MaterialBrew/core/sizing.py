"""Physical size and resolution hints embedded in texture file names."""

import re
from typing import Optional, Tuple

_MM_XY = re.compile(r"(\d{2,5})x(\d{2,5})\s*mm")
_MM = re.compile(r"(\d{2,5})\s*mm")
_M_XY = re.compile(r"(\d+(?:\.\d+)?)x(\d+(?:\.\d+)?)\s*m(?![a-z])")
_M = re.compile(r"(?<![a-z0-9.])(\d+(?:\.\d+)?)\s*m(?![a-z])")
_LOD = re.compile(r"(?<![a-z0-9])([1248])k(?![a-z0-9])", re.IGNORECASE)


def detect_size_from_name(name: str) -> Tuple[Optional[float], Optional[float]]:
    """Return (x, y) in metres parsed from a name, or (None, None).

    Recognised forms, first match wins: ``200x100mm``, ``300mm``,
    ``2x1m``, ``1.5m``.
    """
    name = (name or "").lower()

    m = _MM_XY.search(name)
    if m:
        return int(m.group(1)) / 1000.0, int(m.group(2)) / 1000.0
    m = _MM.search(name)
    if m:
        v = int(m.group(1)) / 1000.0
        return v, v
    m = _M_XY.search(name)
    if m:
        return float(m.group(1)), float(m.group(2))
    m = _M.search(name)
    if m:
        v = float(m.group(1))
        return v, v
    return None, None


def detect_lod(name: str) -> Optional[int]:
    """Return the ``1k/2k/4k/8k`` resolution tag of a name as an int, if any."""
    m = _LOD.search(name or "")
    return int(m.group(1)) if m else None
