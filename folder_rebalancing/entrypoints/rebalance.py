"""Entrypoint: rebalance function for orchestrators/CLIs."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from folder_rebalancing.application.use_case import RebalanceSummary, RebalanceUseCase
from folder_rebalancing.domain.ledger import FailureLedger
from folder_rebalancing.domain.model import SizeFilter
from folder_rebalancing.domain.services import CandidateSelector, Matcher
from folder_rebalancing.infrastructure.filesystem import FilesystemFolderLister, OsSizeProbe
from folder_rebalancing.infrastructure.transfer import (
    DEFAULT_RSYNC_ARGS,
    CopyTreeOperation,
    FilesystemTransferExecutor,
    RsyncOperation,
)
from folder_rebalancing.ports import SizeProbe, TransferOperation

TRANSFER_METHODS = ("copy", "rsync")


def build_transfer_operation(
    method: str,
    *,
    rsync_binary: str = "rsync",
    rsync_args: Sequence[str] = DEFAULT_RSYNC_ARGS,
) -> TransferOperation:
    if method == "copy":
        return CopyTreeOperation()
    if method == "rsync":
        return RsyncOperation(binary=rsync_binary, args=tuple(rsync_args))
    raise ValueError(f"Unknown transfer method: {method!r} (expected one of {', '.join(TRANSFER_METHODS)})")


def rebalance(
    *,
    source_roots: Sequence[Path],
    destination_roots: Sequence[Path],
    size_filter: SizeFilter,
    operation: Optional[TransferOperation] = None,
    size_probe: Optional[SizeProbe] = None,
    ledger: Optional[FailureLedger] = None,
    max_parallel_transfers: Optional[int] = None,
    max_rounds: Optional[int] = None,
) -> RebalanceSummary:
    """Entrypoint to rebalance source folders onto destination roots.

    This is the composition root for the folder rebalancing context.

    Args:
        source_roots: Roots whose immediate children are moved, in priority order.
        destination_roots: Roots that receive them, in fill order.
        size_filter: Name prefix and [min, max) size range for eligible children.
        operation: Transfer mechanism; defaults to an in-process copy.
        size_probe: Override for free-space / subtree-size queries.
        ledger: Failure ledger to reuse; a fresh one is created by default.
        max_parallel_transfers: Cap on simultaneous transfers per round (None = one per assignment).
        max_rounds: Stop after this many transferring rounds (None = until exhausted).

    Returns:
        RebalanceSummary with the terminal status and the failed sources.
    """
    # Infrastructure
    probe = size_probe or OsSizeProbe()
    executor = FilesystemTransferExecutor(operation=operation or CopyTreeOperation())

    # Domain
    selector = CandidateSelector(lister=FilesystemFolderLister(), size_probe=probe, size_filter=size_filter)
    matcher = Matcher(selector=selector, size_probe=probe, size_filter=size_filter)

    # Application
    use_case = RebalanceUseCase(
        matcher=matcher,
        executor=executor,
        source_roots=[Path(p) for p in source_roots],
        destination_roots=[Path(p) for p in destination_roots],
        ledger=ledger,
        max_parallel_transfers=max_parallel_transfers,
        max_rounds=max_rounds,
    )
    return use_case.run()
