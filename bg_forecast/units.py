"""Blood glucose unit conversion.

The simulator works in mg/dL throughout. Values entered in mmol/L are
converted on the way in and results are converted back on the way out.
"""

from __future__ import annotations

from typing import Optional, Union
import math

import numpy as np

from .errors import InvalidParameterError

MGDL_PER_MMOLL = 18.0182

MGDL = "mg/dL"
MMOLL = "mmol/L"

_ALIASES = {
    "mg/dl": MGDL,
    "mgdl": MGDL,
    "mmol/l": MMOLL,
    "mmol": MMOLL,
    "mmoll": MMOLL,
}

Number = Union[float, np.ndarray]


def normalize_unit(unit: str) -> str:
    """Return the canonical spelling of `unit` ("mg/dL" or "mmol/L")."""
    key = str(unit).strip().lower()
    if key not in _ALIASES:
        raise InvalidParameterError(f"Unknown BG unit {unit!r} (expected 'mg/dL' or 'mmol/L')")
    return _ALIASES[key]


def mgdl_to_mmoll(value: Number) -> Number:
    return value / MGDL_PER_MMOLL


def mmoll_to_mgdl(value: Number) -> Number:
    return value * MGDL_PER_MMOLL


def to_mgdl(value: Number, unit: str) -> Number:
    """Convert a reading in `unit` to mg/dL."""
    if normalize_unit(unit) == MMOLL:
        return mmoll_to_mgdl(value)
    return value


def from_mgdl(value: Number, unit: str) -> Number:
    """Convert an mg/dL value to `unit`."""
    if normalize_unit(unit) == MMOLL:
        return mgdl_to_mmoll(value)
    return value


def parse_bg(value) -> Optional[float]:
    """Coerce a BG reading (number or numeric string) to float.

    Returns None for missing, unparsable or non-finite input.
    """
    if value is None:
        return None
    try:
        bg = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(bg):
        return None
    return bg
