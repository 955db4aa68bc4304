"""Application layer: the rebalancing round loop."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from folder_rebalancing.domain.ledger import FailureLedger
from folder_rebalancing.domain.model import (
    Assignment,
    RoundPhase,
    RoundPlan,
    RoundStatus,
    TransferOutcome,
)
from folder_rebalancing.domain.services import Matcher
from folder_rebalancing.ports import TransferExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundSummary:
    number: int
    plan: RoundPlan
    outcomes: List[TransferOutcome] = field(default_factory=list)

    @property
    def status(self) -> RoundStatus:
        return self.plan.status


@dataclass(frozen=True)
class RebalanceSummary:
    status: RoundStatus
    rounds: int
    transferred: List[Assignment]
    failed: List[Path]


class RebalanceUseCase:
    """Use case: repeat scan → match → transfer rounds until a terminal state.

    Each round:
    - Scanning/Matching: the matcher picks one candidate per source root and
      pairs candidates with destinations that have room for ``max_size``.
    - Transferring: one task per assignment on a thread pool. Failed sources
      are recorded in the ledger; other tasks carry on.
    - Deciding: the pool is drained (full barrier) before the next round.

    The loop ends when the matcher reports sources or destinations exhausted,
    or when ``max_rounds`` rounds have run. A ``SubtreeSizeError`` raised
    while scanning is not caught here.
    """

    def __init__(
        self,
        *,
        matcher: Matcher,
        executor: TransferExecutor,
        source_roots: Sequence[Path],
        destination_roots: Sequence[Path],
        ledger: Optional[FailureLedger] = None,
        max_parallel_transfers: Optional[int] = None,
        max_rounds: Optional[int] = None,
    ) -> None:
        self._matcher = matcher
        self._executor = executor
        self._source_roots = [Path(p) for p in source_roots]
        self._destination_roots = [Path(p) for p in destination_roots]
        self._ledger = ledger if ledger is not None else FailureLedger()
        self._max_parallel_transfers = max_parallel_transfers
        self._max_rounds = max_rounds

    @property
    def ledger(self) -> FailureLedger:
        return self._ledger

    def run(self) -> RebalanceSummary:
        transferred: List[Assignment] = []
        rounds = 0
        while True:
            if self._max_rounds is not None and rounds >= self._max_rounds:
                logger.info("Stopping after %d round(s) (round limit)", rounds)
                status = RoundStatus.ROUND_LIMIT
                break

            summary = self.run_round(rounds + 1)
            if summary.status.is_terminal:
                status = summary.status
                break

            rounds += 1
            transferred.extend(o.assignment for o in summary.outcomes if o.ok)
            logger.debug("Round %d phase: %s", summary.number, RoundPhase.DECIDING.value)

        return RebalanceSummary(
            status=status,
            rounds=rounds,
            transferred=transferred,
            failed=self._ledger.paths(),
        )

    def run_round(self, number: int) -> RoundSummary:
        logger.debug("Round %d phase: %s", number, RoundPhase.SCANNING.value)
        plan = self._matcher.plan_round(
            self._source_roots,
            self._destination_roots,
            self._ledger.snapshot(),
        )
        if plan.status.is_terminal:
            logger.info("Round %d: %s (%d candidate(s))",
                        number, plan.status.value, len(plan.candidates))
            return RoundSummary(number=number, plan=plan)

        logger.info("Round %d: %d candidate(s), %d assignment(s)",
                    number, len(plan.candidates), len(plan.assignments))
        logger.debug("Round %d phase: %s", number, RoundPhase.TRANSFERRING.value)
        outcomes = self.transfer_all(plan.assignments)
        return RoundSummary(number=number, plan=plan, outcomes=outcomes)

    def transfer_all(self, assignments: Sequence[Assignment]) -> List[TransferOutcome]:
        """Run every assignment concurrently and wait for all of them."""
        if not assignments:
            return []
        workers = len(assignments)
        if self._max_parallel_transfers is not None:
            workers = max(1, min(workers, self._max_parallel_transfers))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="transfer") as pool:
            futures = [pool.submit(self._transfer_one, a) for a in assignments]
            return [f.result() for f in futures]

    def _transfer_one(self, assignment: Assignment) -> TransferOutcome:
        logger.info("%s -> %s started", assignment.source, assignment.destination_root)
        try:
            self._executor.transfer(assignment)
        except Exception as e:
            logger.error("%s -> %s failed: %s", assignment.source, assignment.destination_root, e)
            self._ledger.record(assignment.source)
            return TransferOutcome(assignment=assignment, error=e)
        logger.info("%s -> %s done", assignment.source, assignment.destination_root)
        return TransferOutcome(assignment=assignment)
