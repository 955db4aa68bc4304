"""Ports (Protocol interfaces) for folder rebalancing.

The domain and application layers depend on these abstractions; the
filesystem-backed implementations live in ``infrastructure``.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Protocol

from folder_rebalancing.domain.model import Assignment


class SizeProbe(Protocol):
    """Port: capacity and size queries. Stateless."""

    def free_space(self, path: Path) -> int:
        """Available bytes on the filesystem holding ``path``; raises OSError."""
        ...

    def subtree_size(self, path: Path) -> int:
        """Total size of non-directory entries under ``path``; raises SubtreeSizeError."""
        ...


class FolderLister(Protocol):
    """Port: enumerate the immediate child directories of a source root."""

    def list_subdirs(self, root: Path) -> List[Path]: ...


class TransferOperation(Protocol):
    """Port: the mechanism that materializes ``source`` at ``target``.

    Must not delete the source. Raises TransferFailedError on failure.
    """

    def copy_tree(self, *, source: Path, target: Path) -> None: ...


class TransferExecutor(Protocol):
    """Port: move one assigned source into its destination root."""

    def transfer(self, assignment: Assignment) -> None: ...
