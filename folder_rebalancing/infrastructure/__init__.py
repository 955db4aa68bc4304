"""Infrastructure layer: concrete IO implementations for folder rebalancing."""

from .filesystem import FilesystemFolderLister, OsSizeProbe
from .transfer import CopyTreeOperation, FilesystemTransferExecutor, RsyncOperation

__all__ = [
    "FilesystemFolderLister",
    "OsSizeProbe",
    "CopyTreeOperation",
    "FilesystemTransferExecutor",
    "RsyncOperation",
]
