"""Forwards Minecraft server log events to an HTTP endpoint."""

__version__ = "1.0.0"
