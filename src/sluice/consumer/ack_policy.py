"""Policy for acknowledging successfully handled deliveries."""

import logging
from dataclasses import dataclass
from enum import Enum

from sluice.exceptions import ResolutionError
from sluice.models.delivery import Delivery

logger = logging.getLogger(__name__)


class AckFailurePolicy(str, Enum):
    """What to do when an ack call fails."""

    DROP = "drop"
    RETRY = "retry"


@dataclass(frozen=True)
class AckPolicy:
    """
    Acknowledge a delivery, falling back to reject-without-requeue.

    With DROP, one failed ack drops the message. With RETRY, the ack is
    attempted up to retry_attempts more times before dropping. Either way
    the message never stays unresolved.
    """

    on_failure: AckFailurePolicy = AckFailurePolicy.DROP
    retry_attempts: int = 3

    def acknowledge(self, delivery: Delivery) -> bool:
        """
        Ack the delivery, or drop it if the ack cannot be recorded.

        Returns:
            True if the ack was issued, False if the message was dropped

        Raises:
            ResolutionError: If the fallback reject also fails
        """
        attempts = 1
        if self.on_failure is AckFailurePolicy.RETRY:
            attempts += max(self.retry_attempts, 0)

        for attempt in range(1, attempts + 1):
            try:
                delivery.ack()
                return True
            except ResolutionError as exc:
                logger.warning(
                    "Ack attempt %d/%d failed for delivery %s: %s",
                    attempt,
                    attempts,
                    delivery.delivery_tag,
                    exc,
                )

        logger.warning("Dropping delivery %s after failed ack", delivery.delivery_tag)
        delivery.reject(requeue=False)
        return False


DEFAULT_ACK_POLICY = AckPolicy()
