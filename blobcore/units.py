from __future__ import annotations

from typing import Sequence, Tuple

# micrometers per unit
UM_PER_UNIT = {
    "m": 1e6, "meter": 1e6,
    "cm": 1e4, "centimeter": 1e4,
    "mm": 1e3, "millimeter": 1e3,
    "um": 1.0, "µm": 1.0, "micron": 1.0, "micrometer": 1.0,
    "nm": 1e-3, "nanometer": 1e-3,
    "pm": 1e-6, "picometer": 1e-6,
}


def to_micrometers(value: float, unit: str) -> float:
    try:
        factor = UM_PER_UNIT[unit.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown length unit '{unit}'") from None
    return float(value) * factor


def element_size_um(sizes: Sequence[float], unit: str = "um") -> Tuple[float, ...]:
    return tuple(to_micrometers(s, unit) for s in sizes)
