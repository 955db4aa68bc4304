from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class SizeFilter:
    """Which source children are eligible: name prefix + half-open size range."""

    min_size: int
    max_size: int
    prefix: str = ""

    def __post_init__(self) -> None:
        if self.min_size > self.max_size:
            raise ValueError(
                f"min_size ({self.min_size}) must not exceed max_size ({self.max_size})")

    def accepts_name(self, name: str) -> bool:
        return name.startswith(self.prefix)

    def accepts_size(self, size: int) -> bool:
        return self.min_size <= size < self.max_size


@dataclass(frozen=True)
class Candidate:
    """A source-root child directory that passed the filter this round."""

    path: Path
    size: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class Assignment:
    """One round's pairing of a candidate with a destination root."""

    source: Path
    destination_root: Path

    @property
    def target(self) -> Path:
        return self.destination_root / self.source.name


class RoundStatus(str, Enum):
    READY = "ready"
    SOURCES_EXHAUSTED = "sources_exhausted"
    DESTINATIONS_EXHAUSTED = "destinations_exhausted"
    ROUND_LIMIT = "round_limit"

    @property
    def is_terminal(self) -> bool:
        return self is not RoundStatus.READY


class RoundPhase(str, Enum):
    SCANNING = "scanning"
    MATCHING = "matching"
    TRANSFERRING = "transferring"
    DECIDING = "deciding"


@dataclass(frozen=True)
class RoundPlan:
    """Result of scanning + matching for one round."""

    status: RoundStatus
    candidates: List[Candidate] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)


@dataclass(frozen=True)
class TransferOutcome:
    assignment: Assignment
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
