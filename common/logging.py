import logging


class CountingHandler(logging.Handler):
    """Counts warnings and errors emitted while attached.

    ``Handler.handle`` serializes ``emit`` with the handler lock, so transfer
    threads can log through it concurrently.
    """

    def __init__(self):
        super().__init__(level=logging.WARNING)
        self.warnings = 0
        self.errors = 0

    def emit(self, record):
        if record.levelno >= logging.ERROR:
            self.errors += 1
        elif record.levelno >= logging.WARNING:
            self.warnings += 1
