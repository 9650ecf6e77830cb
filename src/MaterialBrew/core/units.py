"""Centimetre <-> host unit conversion.

All physical sizes cross the host boundary through these two functions.
"""

from ..config import HostUnit

_CM_PER_UNIT = {
    HostUnit.FEET: 30.48,
    HostUnit.METERS: 100.0,
    HostUnit.CENTIMETERS: 1.0,
}


def cm_to_host(value_cm: float, unit: HostUnit) -> float:
    """Convert centimetres to the host graph's native length unit."""
    return float(value_cm) / _CM_PER_UNIT[HostUnit(unit)]


def host_to_cm(value: float, unit: HostUnit) -> float:
    """Convert a host-native length back to centimetres."""
    return float(value) * _CM_PER_UNIT[HostUnit(unit)]
