"""Delivery and resolution models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sluice.adapters.rabbitmq.channel import ResolutionChannel


class Resolution(Enum):
    """Terminal disposition of a delivery."""

    ACK = "ack"
    REJECT_REQUEUE = "reject_requeue"
    REJECT_DROP = "reject_drop"


@dataclass
class Delivery:
    """
    A single message fetched from or pushed by the broker.

    The delivery tag is only meaningful on the channel the message came from,
    so a Delivery always carries both and resolves through that channel.
    """

    channel: "ResolutionChannel"
    delivery_tag: int
    body: bytes
    redelivered: bool = False
    routing_key: str = ""
    resolution: Optional[Resolution] = field(default=None, compare=False)

    @property
    def resolved(self) -> bool:
        return self.resolution is not None

    def ack(self) -> None:
        """Acknowledge this delivery on its own channel."""
        self.channel.ack(self)

    def reject(self, requeue: bool) -> None:
        """Reject this delivery on its own channel."""
        self.channel.reject(self, requeue=requeue)
