class RaffleBotError(Exception):
    """Base class for every failure the bot knows how to survive (or not)."""


class ProvisioningError(RaffleBotError):
    """Wallet pool could not be created, funded or loaded. Fatal at startup."""


class ReadError(RaffleBotError):
    """A read-only query against the raffle or VRF program failed."""


class SubmissionError(RaffleBotError):
    """A write failed while simulating, sending or confirming."""

    def __init__(self, action: str, reason):
        self.action = action
        self.reason = reason
        super().__init__(f"{action} failed: {reason}")
