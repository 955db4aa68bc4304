"""Transfer adapters: the executor contract plus copy and rsync mechanisms.

Partial-data policy:
- ``CopyTreeOperation`` removes whatever it wrote before reporting failure,
  so a failed copy never leaves a half-populated target behind.
- ``RsyncOperation`` writes into a hidden ``.<name>.partial`` directory next
  to the target and keeps it on failure, so a later attempt (for example
  after a restart clears the in-memory failure ledger) resumes instead of
  starting over. The staging directory is renamed onto the target only once
  rsync exits successfully. ``--delete`` is always passed, so leftovers from
  another folder of the same name (or files since removed from the source)
  are dropped from staging instead of being merged into the target.

In both cases the source is deleted by the executor, and only after the
operation has returned without error.
"""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Sequence, Tuple

from common.fs import remove_tree
from exceptions.exceptions import (
    DestinationExistsError,
    SourceCleanupError,
    SourceMissingError,
    TransferFailedError,
)
from folder_rebalancing.domain.model import Assignment
from folder_rebalancing.ports import TransferOperation

logger = logging.getLogger(__name__)

DEFAULT_RSYNC_ARGS: Tuple[str, ...] = ("--archive", "--partial")
# Staging must mirror the source; appended even when rsync_args omit it.
MIRROR_ARG = "--delete"


def run_command(cmd: Sequence[str]) -> subprocess.CompletedProcess:
    logger.debug("cmd: %s", " ".join(shlex.quote(str(x)) for x in cmd))
    try:
        result = subprocess.run(list(cmd), check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except subprocess.CalledProcessError as exc:
        if exc.stdout:
            logger.error("stdout: %s", exc.stdout.strip())
        if exc.stderr:
            logger.error("stderr: %s", exc.stderr.strip())
        raise
    if result.stdout:
        logger.debug("stdout: %s", result.stdout.strip())
    if result.stderr:
        logger.debug("stderr: %s", result.stderr.strip())
    return result


# ---------------------------------------------------------------------------
# TransferOperation adapters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CopyTreeOperation:
    """In-process recursive copy (``shutil.copytree``, symlinks kept as links)."""

    def copy_tree(self, *, source: Path, target: Path) -> None:
        try:
            shutil.copytree(str(source), str(target), symlinks=True)
        except OSError as e:
            if isinstance(e, FileExistsError) and e.filename is not None and Path(e.filename) == target:
                # Target appeared after the executor checked; it is not ours to remove.
                raise DestinationExistsError(
                    "DESTINATION_EXISTS",
                    f"Destination entry appeared during the copy: {target}",
                    context=str(target),
                ) from e
            self._discard_partial(target)
            raise TransferFailedError(
                "COPY_FAILED",
                f"Copy {source} -> {target} failed: {e}",
                context="copy_tree",
            ) from e

    @staticmethod
    def _discard_partial(target: Path) -> None:
        try:
            remove_tree(str(target))
        except OSError:
            logger.exception("Could not remove partial copy at %s", target)


@dataclass(frozen=True)
class RsyncOperation:
    """External resumable sync through the ``rsync`` binary."""

    binary: str = "rsync"
    args: Tuple[str, ...] = DEFAULT_RSYNC_ARGS
    runner: Callable[[Sequence[str]], object] = field(default=run_command, compare=False)

    @staticmethod
    def staging_path(target: Path) -> Path:
        return target.parent / f".{target.name}.partial"

    def build_command(self, source: Path, staging: Path) -> List[str]:
        # Trailing separators: sync the *contents* of source into staging.
        args = list(self.args)
        if MIRROR_ARG not in args:
            args.append(MIRROR_ARG)
        return [self.binary, *args, f"{source}{os.sep}", f"{staging}{os.sep}"]

    def copy_tree(self, *, source: Path, target: Path) -> None:
        staging = self.staging_path(target)
        if staging.exists():
            logger.info("Resuming partial transfer in %s", staging)
        try:
            self.runner(self.build_command(source, staging))
        except subprocess.CalledProcessError as e:
            raise TransferFailedError(
                "RSYNC_FAILED",
                f"rsync {source} -> {staging} exited with {e.returncode}: {(e.stderr or '').strip()}",
                context="rsync",
            ) from e
        except OSError as e:
            raise TransferFailedError(
                "RSYNC_NOT_RUNNABLE",
                f"Cannot run {self.binary}: {e}",
                context="rsync",
            ) from e

        try:
            os.rename(staging, target)
        except OSError as e:
            raise TransferFailedError(
                "STAGING_RENAME_FAILED",
                f"Cannot move {staging} into place at {target}: {e}",
                context="rsync",
            ) from e


# ---------------------------------------------------------------------------
# TransferExecutor adapter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilesystemTransferExecutor:
    """Move ``assignment.source`` to ``destination_root/<source name>``.

    Refuses when the source is gone or the target name is already taken;
    never merges into or overwrites an existing entry.
    """

    operation: TransferOperation

    def transfer(self, assignment: Assignment) -> None:
        source = assignment.source
        target = assignment.target

        if not source.exists():
            raise SourceMissingError(
                "SOURCE_MISSING",
                f"Source directory no longer exists: {source}",
                context=str(source),
            )
        if os.path.lexists(target):
            raise DestinationExistsError(
                "DESTINATION_EXISTS",
                f"Destination already has an entry named {source.name}: {target}",
                context=str(target),
            )

        self.operation.copy_tree(source=source, target=target)

        try:
            remove_tree(str(source))
        except OSError as e:
            raise SourceCleanupError(
                "SOURCE_CLEANUP_FAILED",
                f"Copied to {target} but could not delete source {source}: {e}",
                context=str(source),
            ) from e
