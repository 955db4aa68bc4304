"""Application layer: use-cases for the folder_rebalancing bounded context."""

from .use_case import RebalanceUseCase, RebalanceSummary, RoundSummary

__all__ = ["RebalanceUseCase", "RebalanceSummary", "RoundSummary"]
