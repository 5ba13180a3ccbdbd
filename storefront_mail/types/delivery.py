"""
Delivery-related type definitions: messages, tier results and attempt log
records.
"""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storefront_mail.constants import AttemptStatus, DeliveryTier, MessageType


class MailMessage(BaseModel):
    """A rendered message ready to be handed to a delivery tier."""

    sender: str
    to: str
    subject: str
    html: str
    headers: dict[str, str] = Field(default_factory=dict)


class DeliveryMetadata(BaseModel):
    """Bookkeeping carried alongside a message for the attempt log."""

    message_type: MessageType = MessageType.UNKNOWN
    order_id: str | None = None


@dataclass(frozen=True)
class SendReceipt:
    """What a tier hands back after accepting a message."""

    message_id: str


class DeliveryResult(BaseModel):
    """Outcome of one orchestration pass over the delivery tiers."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    tier: DeliveryTier | None = None

    @property
    def simulated(self) -> bool:
        return self.tier == DeliveryTier.SIMULATED


class AttemptRecord(BaseModel):
    """Input to the attempt logger describing one tier-level attempt."""

    message_type: MessageType = MessageType.UNKNOWN
    to: str
    subject: str
    order_id: str | None = None
    success: bool
    message_id: str | None = None
    error: str | None = None
    retry_count: int = 0
    tier: DeliveryTier | None = None


class AttemptLogEntry(BaseModel):
    """
    Immutable audit record of one delivery attempt.

    This is the shape persisted to the durable JSON log.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    type: MessageType
    to: str
    subject: str
    order_id: str | None = None
    status: AttemptStatus
    message_id: str | None = None
    error: str | None = None
    retry_count: int = 0
    tier: DeliveryTier | None = None


class AttemptStats(BaseModel):
    """Aggregate view over the in-memory attempt log."""

    total: int
    success: int
    failed: int
    success_rate: float
    last_attempt_at: datetime | None = None


@dataclass
class TierStats:
    """Attempt counters for one delivery tier since process start."""

    attempts: int = 0
    successes: int = 0

    def record(self, success: bool) -> None:
        self.attempts += 1
        if success:
            self.successes += 1

    @property
    def failures(self) -> int:
        return self.attempts - self.successes

    @property
    def success_rate(self) -> float:
        """Success percentage, 0.0 when the tier has not been tried."""
        if not self.attempts:
            return 0.0
        return round(self.successes / self.attempts * 100, 2)
