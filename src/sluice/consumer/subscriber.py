"""Push-mode subscriber running a pool of consumer threads."""

import logging
import threading
from typing import Any, Callable, Optional

from sluice.adapters.rabbitmq.channel import ResolutionChannel
from sluice.consumer.ack_policy import DEFAULT_ACK_POLICY, AckPolicy
from sluice.consumer.message_consumer import DEFAULT_CODEC
from sluice.exceptions import DeserializationError, ResolutionError
from sluice.models.delivery import Delivery
from sluice.protocols.channel import AmqpConnection
from sluice.protocols.codec import PayloadCodec
from sluice.protocols.handler import MessageHandler

logger = logging.getLogger(__name__)

ConnectionProvider = Callable[[], AmqpConnection]


class SubscriberWorker(threading.Thread):
    """
    One long-running push consumer bound to its own channel.

    Responsibilities:
    - Open a channel and register a consumer on the queue
    - Decode each delivery and route it to the mapper
    - Ack on normal return, reject without requeue on any failure

    Deliveries are handled one at a time on this thread, so resolutions on
    the channel never overlap.
    """

    def __init__(
        self,
        name: str,
        queue_name: str,
        mapper_fn: MessageHandler,
        connection_provider: ConnectionProvider,
        codec: PayloadCodec,
        ack_policy: AckPolicy,
        prefetch_count: int = 1,
    ):
        super().__init__(name=name, daemon=True)
        self.queue_name = queue_name
        self.mapper_fn = mapper_fn
        self.connection_provider = connection_provider
        self.codec = codec
        self.ack_policy = ack_policy
        self.prefetch_count = prefetch_count
        self.ready = threading.Event()
        self.registered = False
        self._running = False
        self._state_lock = threading.Lock()
        self._connection: Optional[AmqpConnection] = None
        self._channel: Optional[ResolutionChannel] = None

    def start(self) -> None:
        """Start the consumer thread."""
        self._running = True
        super().start()

    def stop(self) -> None:
        """
        Signal the worker to stop accepting deliveries.

        The stop request is handed to the connection's own thread; an
        in-flight mapper call is allowed to finish first.
        """
        with self._state_lock:
            self._running = False
            if self._connection is not None and self._channel is not None:
                self._connection.add_callback_threadsafe(self._channel.stop_consuming)

    def run(self) -> None:
        try:
            self._consume()
        except Exception:
            logger.exception("Subscriber %s on %s crashed", self.name, self.queue_name)
        finally:
            self.ready.set()

    def handle_delivery(self, delivery: Delivery) -> None:
        """Decode, map and resolve a single pushed delivery."""
        try:
            message = self.codec.decode(delivery.body)
        except DeserializationError as exc:
            logger.warning("Dropping undecodable delivery %s: %s", delivery.delivery_tag, exc)
            self._drop(delivery)
            return

        try:
            self.mapper_fn(message)
        except Exception:
            logger.exception(
                "Mapper failed for delivery %s from %s, dropping",
                delivery.delivery_tag,
                self.queue_name,
            )
            self._drop(delivery)
            return

        try:
            self.ack_policy.acknowledge(delivery)
        except ResolutionError:
            logger.exception("Could not resolve delivery %s", delivery.delivery_tag)

    def _consume(self) -> None:
        connection = self.connection_provider()
        channel = ResolutionChannel(connection.channel())
        try:
            with self._state_lock:
                if not self._running:
                    return
                self._connection = connection
                self._channel = channel

            channel.qos(self.prefetch_count)
            consumer_tag = channel.subscribe(self.queue_name, self.handle_delivery)
            logger.info(
                "Subscriber %s consuming %s with consumer tag %s",
                self.name,
                self.queue_name,
                consumer_tag,
            )
            self.registered = True
            self.ready.set()
            channel.start_consuming()
        finally:
            with self._state_lock:
                self._connection = None
                self._channel = None
            channel.close()
            logger.info("Subscriber %s channel on %s closed", self.name, self.queue_name)

    def _drop(self, delivery: Delivery) -> None:
        try:
            delivery.reject(requeue=False)
        except ResolutionError:
            logger.exception("Could not reject delivery %s", delivery.delivery_tag)


class Subscriber:
    """Handle over a pool of SubscriberWorker threads."""

    def __init__(self, workers: list[SubscriberWorker]):
        self.workers = workers

    def start(self) -> "Subscriber":
        for worker in self.workers:
            worker.start()
        return self

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every worker has registered its consumer.

        Returns:
            False if a worker timed out or exited before registering
        """
        return all(worker.ready.wait(timeout) and worker.registered for worker in self.workers)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop all workers cooperatively and wait for their threads to exit."""
        for worker in self.workers:
            worker.stop()
        for worker in self.workers:
            worker.join(timeout)
            if worker.is_alive():
                logger.warning("Subscriber %s did not stop within %ss", worker.name, timeout)

    @property
    def running(self) -> bool:
        return any(worker.is_alive() for worker in self.workers)

    def __enter__(self) -> "Subscriber":
        return self

    def __exit__(self, *_exc_info: Any) -> None:
        self.stop()


def start_subscriber(
    worker_count: int,
    mapper_fn: MessageHandler,
    queue_name: str,
    connection_provider: ConnectionProvider,
    codec: Optional[PayloadCodec] = None,
    prefetch_count: int = 1,
    ack_policy: Optional[AckPolicy] = None,
) -> Subscriber:
    """
    Start `worker_count` push consumers on a queue.

    Args:
        worker_count: Number of consumer threads, each with its own channel
        mapper_fn: Called with every decoded message
        queue_name: Queue to consume from
        connection_provider: Returns the connection a worker opens its channel on
        codec: Payload codec (JSON by default)
        prefetch_count: Unacknowledged deliveries the broker may push per channel
        ack_policy: Fallback behaviour when an ack fails

    Returns:
        A started Subscriber; call stop() to shut it down
    """
    if worker_count < 1:
        raise ValueError("worker_count must be at least 1")

    workers = [
        SubscriberWorker(
            name=f"sluice-{queue_name}-{index}",
            queue_name=queue_name,
            mapper_fn=mapper_fn,
            connection_provider=connection_provider,
            codec=codec or DEFAULT_CODEC,
            ack_policy=ack_policy or DEFAULT_ACK_POLICY,
            prefetch_count=prefetch_count,
        )
        for index in range(worker_count)
    ]
    return Subscriber(workers).start()
