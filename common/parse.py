from __future__ import annotations

import re
from typing import Union

from .text import parse_float


class ParseError(Exception):
    pass


_SIZE_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([a-zA-Z]*)\s*$")

# "K", "KiB" are binary; "KB" is decimal; a bare "B" or no suffix means bytes.
_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024, "kib": 1024, "kb": 1000,
    "m": 1024 ** 2, "mib": 1024 ** 2, "mb": 1000 ** 2,
    "g": 1024 ** 3, "gib": 1024 ** 3, "gb": 1000 ** 3,
    "t": 1024 ** 4, "tib": 1024 ** 4, "tb": 1000 ** 4,
    "p": 1024 ** 5, "pib": 1024 ** 5, "pb": 1000 ** 5,
}


def parse_size(value: Union[int, str]) -> int:
    """Parse a byte count such as ``52428800``, ``"50MiB"`` or ``"1.5T"``."""
    if isinstance(value, bool):
        raise ParseError(f"not a size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ParseError(f"size must not be negative: {value}")
        return value
    if not isinstance(value, str):
        raise ParseError(f"not a size: {value!r}")

    match = _SIZE_RE.match(value)
    if match is None:
        raise ParseError(f"not a size: {value!r}")
    number = parse_float(match.group(1))
    unit = match.group(2).lower()
    if number is None or unit not in _UNITS:
        raise ParseError(f"unknown size unit in {value!r}")
    return int(number * _UNITS[unit])


def format_size(value: int) -> str:
    units = ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]
    size = float(value)
    for unit in units:
        if abs(size) < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(size)}{unit}"
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}{units[-1]}"
