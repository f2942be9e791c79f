"""Handoff channel between the log watcher and the message sender.

The queue is bounded so that a slow receiving server throttles how fast the
log file is consumed. Nothing is dropped and all messages share one queue.
"""

import asyncio
from typing import AsyncIterator, Optional

from ..logger import logger
from .base import MinecraftMessage

# Marks the end of the stream once the producer is done
_CLOSED = object()


class PipelineClosedError(RuntimeError):
    """Raised when putting into a pipeline that was already closed."""


class MessagePipeline:
    """Single-producer message queue with backpressure."""

    def __init__(self, maxsize: int = 1):
        """Initialize the pipeline.

        Args:
            maxsize: Number of messages that may wait for the consumer.
                Must be at least 1; the producer blocks once it is reached.
        """
        if maxsize < 1:
            raise ValueError("Pipeline capacity must be at least 1")

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    async def put(self, message: MinecraftMessage) -> None:
        """Hand a message to the consumer, waiting while the queue is full."""
        if self._closed:
            raise PipelineClosedError("Cannot put into a closed pipeline")
        await self._queue.put(message)

    async def get(self) -> Optional[MinecraftMessage]:
        """Wait for the next message.

        Returns:
            The next message, or None once the pipeline is closed and drained
        """
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker in place for any other consumer
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    async def close(self) -> None:
        """Signal the consumer that no more messages will arrive.

        Messages already queued are still delivered before iteration ends.
        """
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)
        logger.debug("Message pipeline closed")

    async def __aiter__(self) -> AsyncIterator[MinecraftMessage]:
        while True:
            message = await self.get()
            if message is None:
                return
            yield message
