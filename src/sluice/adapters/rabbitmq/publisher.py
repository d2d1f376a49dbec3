"""RabbitMQ publisher encoding messages with a payload codec."""

from typing import Any, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel

from sluice.codecs.json_codec import JsonCodec
from sluice.protocols.codec import PayloadCodec


class RabbitMQPublisher:
    """
    Publishes encoded messages to a RabbitMQ queue or exchange.

    Topic format: "queue_name" or "exchange_name:routing_key"
    If no routing key provided, publishes directly to queue (default exchange).
    """

    def __init__(self, connection: pika.BlockingConnection, codec: Optional[PayloadCodec] = None):
        self._connection = connection
        self._channel: BlockingChannel = connection.channel()
        self.codec = codec or JsonCodec()

    def publish(self, topic: str, message: Any) -> None:
        """
        Encode a message and publish it persistently.

        Args:
            topic: Queue name, or "exchange:routing_key" format
            message: Value accepted by the codec

        Raises:
            SerializationError: If the codec cannot encode the message
        """
        if ":" in topic:
            exchange, routing_key = topic.split(":", 1)
        else:
            exchange = ""
            routing_key = topic

        self._channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=self.codec.encode(message),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )

    def close(self) -> None:
        if self._channel.is_open:
            self._channel.close()
