"""Message handler protocol definitions."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MessageHandler(Protocol):
    """
    Protocol for processing and mapper functions.

    Handlers receive the decoded message and are responsible for:
    - Processing the message synchronously
    - Returning normally on success

    Note:
        Raising any exception marks the message as failed. Pull-mode
        processing requeues it, push-mode subscription drops it.
    """

    def __call__(self, message: Any) -> None:
        ...
