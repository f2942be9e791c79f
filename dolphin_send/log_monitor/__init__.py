"""
Log monitoring for dolphin-send.

Follows a Minecraft server log file and turns its lines into messages.
"""

from .errors import LogFileNotFoundError, LogFollowError, LogMonitorError
from .parser import DEFAULT_DEATH_KEYWORDS, LogParser, trim_prefix
from .tail import LogTail
from .uuid_cache import UuidCache
from .watcher import MinecraftWatcher

__all__ = [
    "DEFAULT_DEATH_KEYWORDS",
    "LogFileNotFoundError",
    "LogFollowError",
    "LogMonitorError",
    "LogParser",
    "LogTail",
    "MinecraftWatcher",
    "UuidCache",
    "trim_prefix",
]
