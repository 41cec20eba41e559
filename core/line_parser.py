"""Parsing of raw feed text into per-channel numeric arrays.

A record looks like ``<seq>,<ch0>,<ch1>,...``. The leading sequence column is
dropped; every remaining field maps positionally onto a channel index. Fields
that are not plain decimal numbers become NaN, which downstream code reads as
"no sample".
"""
from __future__ import annotations

import math
import re
from typing import List, Optional, Sequence

import numpy as np

DELIMITER = ","

# plain decimal with optional exponent; no inf/nan spellings, no digit separators
_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _to_float(field: str) -> float:
    text = field.strip()
    if not _DECIMAL.fullmatch(text):
        return math.nan
    value = float(text)
    # exponents like 1e999 overflow to inf
    return value if math.isfinite(value) else math.nan


def split_frame(frame: str) -> List[str]:
    """Split a raw frame into lines, keeping their original order."""
    return [line.rstrip("\r") for line in str(frame).split("\n")]


def is_blank(line: str) -> bool:
    return not line.strip()


def parse_line(line: str, delimiter: str = DELIMITER) -> Optional[np.ndarray]:
    """
    Convert one record into a float64 array of channel values.

    Returns None for blank lines.
    """
    if is_blank(line):
        return None
    fields = line.split(delimiter)[1:]
    return np.fromiter((_to_float(f) for f in fields), dtype=np.float64, count=len(fields))


def value_at(values: Sequence[float], index: int) -> float:
    """Value for channel `index`, NaN when the record is too short."""
    if index < 0 or index >= len(values):
        return math.nan
    return float(values[index])


__all__ = ["DELIMITER", "is_blank", "parse_line", "split_frame", "value_at"]
