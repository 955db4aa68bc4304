from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest


class FakeSizeProbe:
    """In-memory SizeProbe: sizes and free space keyed by path."""

    def __init__(self, *, sizes: Optional[Dict[Path, int]] = None, free: Optional[Dict[Path, int]] = None):
        self.sizes = {Path(k): v for k, v in (sizes or {}).items()}
        self.free = {Path(k): v for k, v in (free or {}).items()}
        self.free_queries: List[Path] = []

    def free_space(self, path: Path) -> int:
        self.free_queries.append(Path(path))
        if Path(path) not in self.free:
            raise FileNotFoundError(f"no such mount: {path}")
        return self.free[Path(path)]

    def subtree_size(self, path: Path) -> int:
        return self.sizes[Path(path)]


class FakeFolderLister:
    """In-memory FolderLister: children per root, in the given order."""

    def __init__(self, children: Dict[Path, List[str]]):
        self.children = {Path(k): v for k, v in children.items()}

    def list_subdirs(self, root: Path) -> List[Path]:
        if Path(root) not in self.children:
            raise FileNotFoundError(f"no such directory: {root}")
        return [Path(root) / name for name in self.children[Path(root)]]


def write_folder(root: Path, name: str, size: int, files: int = 1) -> Path:
    """Create ``root/name`` holding ``files`` files totalling ``size`` bytes."""
    folder = root / name
    folder.mkdir(parents=True)
    per_file, rest = divmod(size, files)
    for i in range(files):
        chunk = per_file + (rest if i == files - 1 else 0)
        (folder / f"part_{i}.bin").write_bytes(b"x" * chunk)
    return folder


@pytest.fixture
def fake_probe():
    return FakeSizeProbe


@pytest.fixture
def fake_lister():
    return FakeFolderLister


@pytest.fixture
def make_folder():
    return write_folder
