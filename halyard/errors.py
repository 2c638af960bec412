"""Exception hierarchy shared by the request, stream, and rollout layers."""

from __future__ import annotations


class HalyardError(Exception):
    """Base class for errors raised by halyard."""


class StreamError(HalyardError):
    """Terminal failure of a response stream.

    Raised in place of the next event. Once raised, the stream is exhausted
    and no ``Completed`` event will follow.
    """

    def __init__(self, message: str, *, response_id: str | None = None) -> None:
        super().__init__(message)
        self.response_id = response_id


class StreamIdleTimeout(StreamError):
    """No provider frame arrived within the idle window."""


class RolloutError(HalyardError):
    """Base class for rollout recording failures surfaced to callers."""


class RolloutSerializationError(RolloutError):
    """An item could not be encoded; nothing was queued."""


class RolloutQueueError(RolloutError):
    """The item was not queued and will not be persisted."""


class RolloutQueueFullError(RolloutQueueError):
    """The writer mailbox is at capacity."""


class RolloutClosedError(RolloutQueueError):
    """The writer has stopped and accepts no further items."""


__all__ = [
    "HalyardError",
    "RolloutClosedError",
    "RolloutError",
    "RolloutQueueError",
    "RolloutQueueFullError",
    "RolloutSerializationError",
    "StreamError",
    "StreamIdleTimeout",
]
