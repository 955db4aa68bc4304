"""Domain services: candidate selection and per-round destination matching."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, List, Optional, Sequence

from folder_rebalancing.domain.model import (
    Assignment,
    Candidate,
    RoundPlan,
    RoundStatus,
    SizeFilter,
)
from folder_rebalancing.ports import FolderLister, SizeProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateSelector:
    """Pick the first child of a source root that passes the filter.

    Children are visited in the order the lister returns them (OS directory
    order, not sorted), and the first acceptable one wins; there is no search
    for a best fit. Size errors propagate: skipping an unreadable child would
    hide data from the capacity accounting.
    """

    lister: FolderLister
    size_probe: SizeProbe
    size_filter: SizeFilter

    def select(self, source_root: Path) -> Optional[Candidate]:
        try:
            children = self.lister.list_subdirs(source_root)
        except OSError as e:
            logger.warning("Cannot list source root %s: %s", source_root, e)
            return None

        for child in children:
            if not self.size_filter.accepts_name(child.name):
                continue
            size = self.size_probe.subtree_size(child)
            if self.size_filter.accepts_size(size):
                logger.debug("Selected %s (%d bytes) from %s", child, size, source_root)
                return Candidate(path=child, size=size)

        logger.debug("No eligible folder under %s", source_root)
        return None


@dataclass(frozen=True)
class Matcher:
    """Build one round's assignments.

    A destination qualifies when its free space strictly exceeds
    ``size_filter.max_size``, so any candidate in the filter range fits.
    Each destination and each candidate is used at most once per round.
    """

    selector: CandidateSelector
    size_probe: SizeProbe
    size_filter: SizeFilter

    def collect_candidates(
        self,
        source_roots: Sequence[Path],
        failed: AbstractSet[Path],
    ) -> List[Candidate]:
        candidates: List[Candidate] = []
        for root in source_roots:
            candidate = self.selector.select(Path(root))
            if candidate is None:
                continue
            if candidate.path in failed:
                logger.debug("Skipping previously failed source %s", candidate.path)
                continue
            candidates.append(candidate)
        return candidates

    def assign_destinations(
        self,
        candidates: Sequence[Candidate],
        destination_roots: Sequence[Path],
    ) -> List[Assignment]:
        assignments: List[Assignment] = []
        for destination in destination_roots:
            if len(assignments) >= len(candidates):
                break
            destination = Path(destination)
            free = self._free_space(destination)
            if free > self.size_filter.max_size:
                candidate = candidates[len(assignments)]
                assignments.append(Assignment(source=candidate.path, destination_root=destination))
            else:
                logger.debug("Destination %s has %d bytes free, not above %d; skipped",
                             destination, free, self.size_filter.max_size)
        return assignments

    def plan_round(
        self,
        source_roots: Sequence[Path],
        destination_roots: Sequence[Path],
        failed: AbstractSet[Path],
    ) -> RoundPlan:
        candidates = self.collect_candidates(source_roots, failed)
        if not candidates:
            return RoundPlan(status=RoundStatus.SOURCES_EXHAUSTED)

        assignments = self.assign_destinations(candidates, destination_roots)
        if not assignments:
            return RoundPlan(status=RoundStatus.DESTINATIONS_EXHAUSTED, candidates=candidates)

        return RoundPlan(status=RoundStatus.READY, candidates=candidates, assignments=assignments)

    def _free_space(self, destination: Path) -> int:
        try:
            return self.size_probe.free_space(destination)
        except OSError as e:
            logger.warning("Cannot stat destination %s, treating as full: %s", destination, e)
            return 0
