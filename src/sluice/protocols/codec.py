"""Payload codec protocol definitions."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PayloadCodec(Protocol):
    """Protocol for converting logical messages to and from message bodies."""

    def encode(self, value: Any) -> bytes:
        """
        Serialize a value into a message body.

        Raises:
            SerializationError: If the value cannot be represented
        """
        ...

    def decode(self, body: bytes) -> Any:
        """
        Deserialize a message body.

        Raises:
            DeserializationError: If the body is malformed or type-incompatible
        """
        ...
