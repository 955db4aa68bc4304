"""Filesystem adapters for folder rebalancing."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from common.fs import free_space, list_immediate_subdirs, subtree_size
from exceptions.exceptions import SubtreeSizeError


@dataclass(frozen=True)
class OsSizeProbe:
    """SizeProbe backed by ``shutil.disk_usage`` and ``os.walk``."""

    def free_space(self, path: Path) -> int:
        return free_space(str(path))

    def subtree_size(self, path: Path) -> int:
        try:
            return subtree_size(str(path))
        except OSError as e:
            raise SubtreeSizeError(
                "SUBTREE_SIZE_FAILED",
                f"Failed to compute size of {path}: {e}",
                context=str(path),
            ) from e


@dataclass(frozen=True)
class FilesystemFolderLister:
    """FolderLister returning real child directories in OS listing order."""

    def list_subdirs(self, root: Path) -> List[Path]:
        return [Path(p) for p in list_immediate_subdirs(str(root))]
