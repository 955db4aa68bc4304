"""Domain layer: value objects, failure ledger and services for folder rebalancing."""

from .model import (
    SizeFilter,
    Candidate,
    Assignment,
    RoundStatus,
    RoundPhase,
    RoundPlan,
    TransferOutcome,
)
from .ledger import FailureLedger
from .services import CandidateSelector, Matcher

__all__ = [
    "SizeFilter",
    "Candidate",
    "Assignment",
    "RoundStatus",
    "RoundPhase",
    "RoundPlan",
    "TransferOutcome",
    "FailureLedger",
    "CandidateSelector",
    "Matcher",
]
