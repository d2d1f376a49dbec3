"""Decode a delivery and resolve it based on the outcome."""

import logging
from typing import Any, Optional

from sluice.codecs.json_codec import JsonCodec
from sluice.consumer.ack_policy import DEFAULT_ACK_POLICY, AckPolicy
from sluice.exceptions import DeserializationError
from sluice.models.delivery import Delivery
from sluice.protocols.codec import PayloadCodec

logger = logging.getLogger(__name__)

DEFAULT_CODEC = JsonCodec()


def decode_delivery(delivery: Delivery, codec: Optional[PayloadCodec] = None) -> Any:
    """
    Decode a delivery body, dropping the message if it cannot be decoded.

    A body that fails to decode will fail again on every redelivery, so it is
    rejected without requeue before the error is re-raised.

    Raises:
        DeserializationError: After the delivery has been rejected
        ResolutionError: If the reject itself fails
    """
    codec = codec or DEFAULT_CODEC
    try:
        return codec.decode(delivery.body)
    except DeserializationError as exc:
        logger.warning("Dropping undecodable delivery %s: %s", delivery.delivery_tag, exc)
        delivery.reject(requeue=False)
        raise


def consume_message(
    delivery: Delivery,
    ack: bool,
    codec: Optional[PayloadCodec] = None,
    ack_policy: Optional[AckPolicy] = None,
) -> Optional[Any]:
    """
    Decode a delivery and optionally acknowledge it.

    Args:
        delivery: Delivery with its channel, tag and raw body
        ack: Whether to acknowledge after a successful decode
        codec: Payload codec (JSON by default)
        ack_policy: Fallback behaviour when the ack fails

    Returns:
        The decoded message, or None if it was dropped. With ack=False a
        decoded message is returned unresolved.

    Raises:
        ResolutionError: If a reject issued as the last resort fails
    """
    try:
        message = decode_delivery(delivery, codec)
    except DeserializationError:
        return None

    if not ack:
        return message

    if (ack_policy or DEFAULT_ACK_POLICY).acknowledge(delivery):
        return message
    return None
