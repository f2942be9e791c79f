"""HTTP delivery of parsed Minecraft messages."""

from .sender import MessageSender

__all__ = ["MessageSender"]
