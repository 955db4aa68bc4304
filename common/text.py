from __future__ import annotations

from typing import Iterable, List, Optional


def parse_float(s: str) -> Optional[float]:
    try:
        return float(s)
    except ValueError:
        return None


def path_lines(paths: Iterable[object]) -> List[str]:
    """One ``str(path)`` per line, no trailing newline characters."""
    return [str(p) for p in paths]
