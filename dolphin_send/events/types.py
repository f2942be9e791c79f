"""Message source definitions."""

from enum import Enum


class MessageSource(str, Enum):
    """Where a Minecraft message originated."""

    # Chat messages typed by a player
    PLAYER = "Player"

    # Everything the server announces: joins, advancements, deaths, lifecycle
    SERVER = "Server"
