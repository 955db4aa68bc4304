from __future__ import annotations

import threading
from pathlib import Path
from typing import FrozenSet, List


class FailureLedger:
    """Sources that failed a transfer at least once.

    Owned by the round loop and handed to matching (reads) and to the
    transfer tasks (appends). Entries are never removed and live only in
    memory, so a restart forgets them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._order: List[Path] = []
        self._seen: set = set()

    def record(self, path: Path) -> bool:
        """Add ``path``; returns False if it was already recorded."""
        path = Path(path)
        with self._lock:
            if path in self._seen:
                return False
            self._seen.add(path)
            self._order.append(path)
            return True

    def snapshot(self) -> FrozenSet[Path]:
        with self._lock:
            return frozenset(self._seen)

    def paths(self) -> List[Path]:
        """Recorded paths in the order they first failed."""
        with self._lock:
            return list(self._order)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return Path(path) in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)
