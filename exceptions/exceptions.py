class RebalanceError(Exception):
    def __init__(self, code: str, message: str, context: str = ""):
        super().__init__(message)
        self.code = code
        self.context = context


class ConfigError(RebalanceError):
    """Configuration is missing, unreadable or malformed (fatal at startup)."""


class SubtreeSizeError(RebalanceError):
    """Walking a candidate subtree failed; the size would be under-reported."""


class TransferError(RebalanceError):
    """A single assignment could not be moved. Recoverable per source."""


class SourceMissingError(TransferError):
    pass


class DestinationExistsError(TransferError):
    pass


class TransferFailedError(TransferError):
    pass


class SourceCleanupError(TransferError):
    pass
