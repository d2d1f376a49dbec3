"""Shared fixtures and an in-memory broker double."""

import queue
import threading
import time
from types import SimpleNamespace
from typing import Callable, Optional
from unittest.mock import Mock

import pytest
from pika.exceptions import ChannelWrongStateError

from sluice.adapters.rabbitmq.channel import ResolutionChannel
from sluice.models.delivery import Delivery


class FakeBroker:
    """Thread-safe in-memory queues shared by every FakeChannel."""

    def __init__(self):
        self._queues: dict[str, queue.Queue] = {}
        self._lock = threading.Lock()
        self.channels: list["FakeChannel"] = []

    def _queue(self, name: str) -> queue.Queue:
        with self._lock:
            return self._queues.setdefault(name, queue.Queue())

    def publish(self, queue_name: str, body: bytes) -> None:
        self._queue(queue_name).put(body)

    def pop(self, queue_name: str, timeout: Optional[float] = None) -> Optional[bytes]:
        try:
            if timeout is None:
                return self._queue(queue_name).get_nowait()
            return self._queue(queue_name).get(timeout=timeout)
        except queue.Empty:
            return None

    def register(self, channel: "FakeChannel") -> None:
        with self._lock:
            self.channels.append(channel)


class FakeChannel:
    """Records acks and rejects the way a real channel would receive them."""

    def __init__(self, broker: FakeBroker):
        self.broker = broker
        self.is_open = True
        self.acks: list[int] = []
        self.rejects: list[tuple[int, bool]] = []
        self.prefetch_count: Optional[int] = None
        self.fail_acks = False
        self.failing_gets = 0
        self._next_tag = 0
        self._consumer: Optional[tuple[str, Callable]] = None
        self._stop = threading.Event()

    def _method(self, queue_name: str) -> SimpleNamespace:
        self._next_tag += 1
        return SimpleNamespace(delivery_tag=self._next_tag, redelivered=False, routing_key=queue_name)

    def basic_get(self, queue, auto_ack=False):
        if self.failing_gets:
            self.failing_gets -= 1
            raise ChannelWrongStateError("Channel is closed.")
        body = self.broker.pop(queue)
        if body is None:
            return None, None, None
        return self._method(queue), None, body

    def basic_ack(self, delivery_tag=0, multiple=False):
        if self.fail_acks:
            raise ChannelWrongStateError("Channel is closed.")
        self.acks.append(delivery_tag)

    def basic_reject(self, delivery_tag=0, requeue=True):
        self.rejects.append((delivery_tag, requeue))

    def basic_qos(self, prefetch_size=0, prefetch_count=0, global_qos=False):
        self.prefetch_count = prefetch_count

    def basic_consume(self, queue, on_message_callback, auto_ack=False, **kwargs):
        self._consumer = (queue, on_message_callback)
        return f"ctag-{id(self)}"

    def start_consuming(self):
        if self._consumer is None:
            return
        queue_name, callback = self._consumer
        while not self._stop.is_set():
            body = self.broker.pop(queue_name, timeout=0.01)
            if body is not None:
                callback(self, self._method(queue_name), None, body)

    def stop_consuming(self, consumer_tag=None):
        self._stop.set()

    def close(self, reply_code=0, reply_text="Normal shutdown"):
        self.is_open = False


class FakeConnection:
    """Connection double that opens FakeChannels on a shared FakeBroker."""

    def __init__(self, broker: FakeBroker):
        self.broker = broker

    def channel(self, channel_number=None) -> FakeChannel:
        channel = FakeChannel(self.broker)
        self.broker.register(channel)
        return channel

    def add_callback_threadsafe(self, callback):
        callback()


def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds or a timeout expires."""
    return _wait_for


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def connection(broker) -> FakeConnection:
    return FakeConnection(broker)


@pytest.fixture
def mock_channel():
    """Create a mock pika channel."""
    channel = Mock()
    channel.is_open = True
    return channel


@pytest.fixture
def channel(mock_channel) -> ResolutionChannel:
    return ResolutionChannel(mock_channel)


@pytest.fixture
def make_delivery(channel):
    """Build deliveries on the mock-backed resolution channel."""

    def _make(body: bytes, delivery_tag: int = 12345) -> Delivery:
        return Delivery(channel=channel, delivery_tag=delivery_tag, body=body)

    return _make
