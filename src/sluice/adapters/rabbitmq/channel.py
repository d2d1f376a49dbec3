"""RabbitMQ channel wrapper owning per-message resolution."""

import logging
from typing import Callable, Optional

from pika.exceptions import AMQPError

from sluice.exceptions import FetchError, ResolutionError
from sluice.models.delivery import Delivery, Resolution
from sluice.protocols.channel import AmqpChannel

logger = logging.getLogger(__name__)

DeliveryCallback = Callable[[Delivery], None]


class ResolutionChannel:
    """
    Wraps one AMQP channel and issues ack/reject calls for its deliveries.

    Every Delivery created here points back at this channel, so a delivery
    tag is never resolved on a channel it did not come from. Each delivery
    accepts exactly one resolution; a second attempt raises ResolutionError
    without reaching the broker.

    Not thread-safe: a channel belongs to exactly one consumption unit.
    """

    def __init__(self, channel: AmqpChannel):
        self._channel = channel

    @property
    def is_open(self) -> bool:
        return bool(self._channel.is_open)

    def fetch(self, queue_name: str) -> Optional[Delivery]:
        """
        Fetch one message from a queue without blocking.

        Args:
            queue_name: Queue to fetch from

        Returns:
            Delivery, or None if the queue is empty
        """
        try:
            method, _properties, body = self._channel.basic_get(queue=queue_name, auto_ack=False)
        except AMQPError as exc:
            raise FetchError(f"basic_get on {queue_name!r} failed: {exc!r}", queue_name) from exc

        if method is None:
            return None

        return self._delivery(method, body)

    def ack(self, delivery: Delivery) -> None:
        self._resolve(delivery, Resolution.ACK)

    def reject(self, delivery: Delivery, requeue: bool) -> None:
        self._resolve(delivery, Resolution.REJECT_REQUEUE if requeue else Resolution.REJECT_DROP)

    def qos(self, prefetch_count: int) -> None:
        self._channel.basic_qos(prefetch_count=prefetch_count)

    def subscribe(self, queue_name: str, callback: DeliveryCallback) -> str:
        """
        Register a push-mode consumer on a queue.

        Args:
            queue_name: Queue to consume from
            callback: Called with each Delivery on the consuming thread

        Returns:
            Consumer tag assigned by the broker
        """

        def on_message(_channel, method, _properties, body: bytes) -> None:
            callback(self._delivery(method, body))

        return self._channel.basic_consume(
            queue=queue_name, on_message_callback=on_message, auto_ack=False
        )

    def start_consuming(self) -> None:
        self._channel.start_consuming()

    def stop_consuming(self) -> None:
        self._channel.stop_consuming()

    def close(self) -> None:
        """Close the underlying channel if it is still open."""
        if not self._channel.is_open:
            return
        try:
            self._channel.close()
        except AMQPError as exc:
            logger.warning("Channel close failed: %r", exc)

    def _delivery(self, method, body: Optional[bytes]) -> Delivery:
        return Delivery(
            channel=self,
            delivery_tag=method.delivery_tag,
            body=body if body is not None else b"",
            redelivered=bool(getattr(method, "redelivered", False)),
            routing_key=getattr(method, "routing_key", "") or "",
        )

    def _resolve(self, delivery: Delivery, resolution: Resolution) -> None:
        if delivery.channel is not self:
            raise ResolutionError(
                "Delivery belongs to a different channel", delivery.delivery_tag
            )
        if delivery.resolution is not None:
            raise ResolutionError(
                f"Delivery already resolved as {delivery.resolution.value}",
                delivery.delivery_tag,
            )

        try:
            if resolution is Resolution.ACK:
                self._channel.basic_ack(delivery_tag=delivery.delivery_tag)
            else:
                self._channel.basic_reject(
                    delivery_tag=delivery.delivery_tag,
                    requeue=resolution is Resolution.REJECT_REQUEUE,
                )
        except AMQPError as exc:
            raise ResolutionError(
                f"{resolution.value} failed for delivery {delivery.delivery_tag}: {exc!r}",
                delivery.delivery_tag,
            ) from exc

        delivery.resolution = resolution
