"""Pull a fixed number of messages from a queue."""

import logging
from typing import Any, Optional

from sluice.adapters.rabbitmq.channel import ResolutionChannel
from sluice.consumer.ack_policy import AckPolicy
from sluice.consumer.message_consumer import consume_message
from sluice.exceptions import BrokerError
from sluice.protocols.channel import AmqpConnection
from sluice.protocols.codec import PayloadCodec

logger = logging.getLogger(__name__)


def fetch_messages(
    connection: AmqpConnection,
    queue_name: str,
    ack: bool,
    count: int,
    codec: Optional[PayloadCodec] = None,
    ack_policy: Optional[AckPolicy] = None,
) -> list[Optional[Any]]:
    """
    Fetch exactly `count` messages from a queue on a dedicated channel.

    Used for inspecting or replaying queues. With ack=False the messages are
    decoded but left unresolved, so the broker redelivers them once the
    channel closes.

    Returns:
        A list of length `count` in fetch order. Entries are None where the
        queue was empty, the body was undecodable, or the broker call failed.
    """
    messages: list[Optional[Any]] = []
    channel = ResolutionChannel(connection.channel())
    try:
        for _ in range(count):
            messages.append(_fetch_one(channel, queue_name, ack, codec, ack_policy))
    finally:
        channel.close()
    return messages


def _fetch_one(
    channel: ResolutionChannel,
    queue_name: str,
    ack: bool,
    codec: Optional[PayloadCodec],
    ack_policy: Optional[AckPolicy],
) -> Optional[Any]:
    try:
        delivery = channel.fetch(queue_name)
        if delivery is None:
            return None
        return consume_message(delivery, ack, codec=codec, ack_policy=ack_policy)
    except BrokerError:
        logger.exception("Error while fetching a message from %s", queue_name)
        return None
