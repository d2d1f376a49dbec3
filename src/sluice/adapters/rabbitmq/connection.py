"""Thread-aware provider of pika blocking connections."""

import logging
import threading
from typing import TYPE_CHECKING

import pika
from pika.exceptions import AMQPError

if TYPE_CHECKING:
    from sluice.config import ConsumerSettings

logger = logging.getLogger(__name__)


class BlockingConnectionProvider:
    """
    Hands out one pika BlockingConnection per calling thread.

    BlockingConnection is not thread-safe, so every thread gets its own
    connection, shared by all channels opened on that thread. The provider
    owns the connections; sluice operations only open and close channels.
    """

    def __init__(self, parameters: pika.connection.Parameters):
        self._parameters = parameters
        self._local = threading.local()
        self._lock = threading.Lock()
        self._connections: list[pika.BlockingConnection] = []

    @classmethod
    def from_settings(cls, settings: "ConsumerSettings") -> "BlockingConnectionProvider":
        return cls(settings.connection_parameters())

    def __call__(self) -> pika.BlockingConnection:
        connection = getattr(self._local, "connection", None)
        if connection is None or not connection.is_open:
            connection = pika.BlockingConnection(self._parameters)
            self._local.connection = connection
            with self._lock:
                self._connections.append(connection)
        return connection

    def close(self) -> None:
        """Close every connection handed out by this provider."""
        with self._lock:
            connections, self._connections = self._connections, []
        for connection in connections:
            if not connection.is_open:
                continue
            try:
                connection.close()
            except AMQPError as exc:
                logger.warning("Connection close failed: %r", exc)
