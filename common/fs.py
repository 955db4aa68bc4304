from __future__ import annotations

import os
import shutil
import logging
from typing import List


def list_immediate_subdirs(parent_dir: str) -> List[str]:
    """Child directories of ``parent_dir`` in the order the OS returns them.

    The order is whatever ``os.scandir`` yields: creation order on some
    filesystems, hash order on others. It is not sorted and not stable across
    platforms. Symlinks to directories are not followed.
    """
    with os.scandir(parent_dir) as it:
        return [
            entry.path
            for entry in it
            if entry.is_dir(follow_symlinks=False)
        ]


def _raise(err: OSError) -> None:
    raise err


def subtree_size(root_dir: str) -> int:
    """Sum of the sizes of all non-directory entries under ``root_dir``.

    Any error during the walk is raised instead of skipped: unreadable
    directories, entries vanishing mid-walk and broken symlinks (file
    symlinks are stat'ed through to their target).
    """
    total = 0
    for dirpath, _, filenames in os.walk(root_dir, onerror=_raise):
        for fname in filenames:
            total += os.stat(os.path.join(dirpath, fname)).st_size
    return total


def free_space(path: str) -> int:
    """Bytes available to an unprivileged writer on the filesystem holding ``path``."""
    return shutil.disk_usage(path).free


def remove_tree(path: str) -> None:
    """Remove a directory tree (or a single file/symlink) if it exists."""
    if os.path.islink(path) or os.path.isfile(path):
        os.remove(path)
    elif os.path.isdir(path):
        shutil.rmtree(path)
    else:
        logging.debug("remove_tree: nothing to remove at %s", path)
