"""Exception hierarchy for sluice."""

from typing import Optional


class SluiceError(Exception):
    """Base exception for all errors raised by sluice."""


class CodecError(SluiceError):
    """Raised when a payload cannot be converted to or from bytes."""


class DeserializationError(CodecError):
    """
    A message body could not be decoded.

    Malformed or type-incompatible payloads never decode on retry, so
    messages that raise this are dropped rather than requeued.
    """


class SerializationError(CodecError):
    """A value could not be encoded into a message body."""


class ProcessingError(SluiceError):
    """
    Caller-supplied processing logic failed for a message.

    Processing and mapper functions may raise this to mark a message as
    failed; any other exception has the same effect.
    """

    def __init__(self, message: str, delivery_tag: Optional[int] = None):
        super().__init__(message)
        self.delivery_tag = delivery_tag


class BrokerError(SluiceError):
    """A call against the broker channel failed."""


class ResolutionError(BrokerError):
    """An ack or reject call could not be issued for a delivery."""

    def __init__(self, message: str, delivery_tag: Optional[int] = None):
        super().__init__(message)
        self.delivery_tag = delivery_tag


class FetchError(BrokerError):
    """A synchronous fetch from a queue failed."""

    def __init__(self, message: str, queue_name: Optional[str] = None):
        super().__init__(message)
        self.queue_name = queue_name
