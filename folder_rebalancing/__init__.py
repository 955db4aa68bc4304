"""Folder rebalancing bounded context (DDD layered package).

This package is intentionally split into:
- domain: value objects, the failure ledger and the selection/matching services
- application: the round loop use-case (orchestration + concurrency)
- infrastructure: IO adapters (filesystem statistics, copy and rsync transfers)
- entrypoints: composition root used by the CLI
"""
