"""Entrypoints: composition roots for the folder_rebalancing context."""

from .rebalance import rebalance, build_transfer_operation

__all__ = ["rebalance", "build_transfer_operation"]
