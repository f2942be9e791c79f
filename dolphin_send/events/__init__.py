"""
Message types and the queue that carries them to the sender.
"""

from .base import MinecraftMessage
from .pipeline import MessagePipeline, PipelineClosedError
from .types import MessageSource

__all__ = [
    "MessagePipeline",
    "MessageSource",
    "MinecraftMessage",
    "PipelineClosedError",
]
