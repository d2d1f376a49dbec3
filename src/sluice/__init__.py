"""Reliable message consumption for RabbitMQ."""

from sluice.codecs.json_codec import JsonCodec
from sluice.consumer.ack_policy import AckFailurePolicy, AckPolicy
from sluice.consumer.batch_fetcher import fetch_messages
from sluice.consumer.message_consumer import consume_message
from sluice.consumer.processing_loop import process_messages
from sluice.consumer.subscriber import Subscriber, start_subscriber
from sluice.exceptions import ProcessingError
from sluice.models.delivery import Delivery, Resolution

__all__ = [
    "AckFailurePolicy",
    "AckPolicy",
    "Delivery",
    "JsonCodec",
    "ProcessingError",
    "Resolution",
    "Subscriber",
    "consume_message",
    "fetch_messages",
    "process_messages",
    "start_subscriber",
]
