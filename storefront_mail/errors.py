"""
Exception types raised inside the mail pipeline.

None of these escape a submitted job: the task queue converts them into
result values.
"""


class MailError(Exception):
    """Base class for mail pipeline errors."""


class TransportError(MailError):
    """A delivery tier could not hand the message to its server."""

    def __init__(self, tier: str, message: str):
        super().__init__(f"[{tier}] {message}")
        self.tier = tier


class DeliveryError(MailError):
    """Every applicable tier failed during one orchestration pass."""
