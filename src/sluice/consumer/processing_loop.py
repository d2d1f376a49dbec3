"""Pull messages from a queue and resolve each after processing it."""

import logging
from typing import Optional

from sluice.adapters.rabbitmq.channel import ResolutionChannel
from sluice.consumer.ack_policy import DEFAULT_ACK_POLICY, AckPolicy
from sluice.consumer.message_consumer import decode_delivery
from sluice.exceptions import BrokerError, DeserializationError
from sluice.protocols.channel import AmqpConnection
from sluice.protocols.codec import PayloadCodec
from sluice.protocols.handler import MessageHandler

logger = logging.getLogger(__name__)


def process_messages(
    connection: AmqpConnection,
    queue_name: str,
    count: int,
    processing_fn: MessageHandler,
    codec: Optional[PayloadCodec] = None,
    ack_policy: Optional[AckPolicy] = None,
) -> int:
    """
    Run `count` fetch-process-resolve iterations against a queue.

    Each iteration:
    1. Fetches one message without blocking (an empty queue skips the iteration)
    2. Decodes it, dropping undecodable bodies
    3. Calls processing_fn with the decoded message
    4. Acks on normal return, rejects with requeue if processing_fn raises

    A message is always resolved before the next fetch. A failing message
    never stops the loop.

    Returns:
        Number of messages acknowledged
    """
    policy = ack_policy or DEFAULT_ACK_POLICY
    acked = 0
    channel = ResolutionChannel(connection.channel())
    try:
        for _ in range(count):
            try:
                if _process_one(channel, queue_name, processing_fn, codec, policy):
                    acked += 1
            except BrokerError:
                logger.exception("Error while processing messages from %s", queue_name)
    finally:
        channel.close()
    return acked


def _process_one(
    channel: ResolutionChannel,
    queue_name: str,
    processing_fn: MessageHandler,
    codec: Optional[PayloadCodec],
    policy: AckPolicy,
) -> bool:
    delivery = channel.fetch(queue_name)
    if delivery is None:
        return False

    try:
        message = decode_delivery(delivery, codec)
    except DeserializationError:
        return False

    try:
        processing_fn(message)
    except Exception:
        logger.exception("Processing failed, requeueing delivery %s from %s", delivery.delivery_tag, queue_name)
        delivery.reject(requeue=True)
        return False

    return policy.acknowledge(delivery)
