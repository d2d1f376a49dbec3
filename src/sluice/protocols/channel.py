"""Broker connection and channel protocol definitions."""

from typing import Any, Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class AmqpChannel(Protocol):
    """
    Protocol for a single AMQP channel.

    Shaped after pika's BlockingChannel so real pika channels satisfy it.
    """

    @property
    def is_open(self) -> bool:
        ...

    def basic_get(self, queue: str, auto_ack: bool = False) -> tuple[Any, Any, Optional[bytes]]:
        """
        Fetch one message without blocking.

        Returns:
            (method, properties, body), or (None, None, None) if the queue is empty
        """
        ...

    def basic_ack(self, delivery_tag: int = 0, multiple: bool = False) -> None:
        ...

    def basic_reject(self, delivery_tag: int = 0, requeue: bool = True) -> None:
        ...

    def basic_qos(self, prefetch_size: int = 0, prefetch_count: int = 0, global_qos: bool = False) -> None:
        ...

    def basic_consume(
        self,
        queue: str,
        on_message_callback: Callable[..., None],
        auto_ack: bool = False,
        **kwargs: Any,
    ) -> str:
        """Register a push-mode consumer and return its consumer tag."""
        ...

    def start_consuming(self) -> None:
        """Block dispatching deliveries until stop_consuming() is called."""
        ...

    def stop_consuming(self, consumer_tag: Optional[str] = None) -> None:
        ...

    def close(self, reply_code: int = 0, reply_text: str = "Normal shutdown") -> None:
        ...


@runtime_checkable
class AmqpConnection(Protocol):
    """Protocol for a broker connection that can open channels."""

    def channel(self, channel_number: Optional[int] = None) -> AmqpChannel:
        ...

    def add_callback_threadsafe(self, callback: Callable[[], None]) -> None:
        """Schedule callback on the thread that owns this connection."""
        ...
