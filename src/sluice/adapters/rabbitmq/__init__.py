"""RabbitMQ adapters for sluice."""

from sluice.adapters.rabbitmq.channel import ResolutionChannel
from sluice.adapters.rabbitmq.connection import BlockingConnectionProvider
from sluice.adapters.rabbitmq.publisher import RabbitMQPublisher

__all__ = ["BlockingConnectionProvider", "RabbitMQPublisher", "ResolutionChannel"]
