"""Glue between the log tail, the parser and the message pipeline."""

from pathlib import Path
from typing import Iterable, Optional, Union

from ..events.pipeline import MessagePipeline
from ..logger import logger
from .parser import LogParser
from .tail import LogTail


class MinecraftWatcher:
    """Watches a Minecraft server log and produces messages."""

    def __init__(
        self,
        path: Union[str, Path],
        custom_death_keywords: Optional[Iterable[str]] = None,
        poll_interval_ms: int = 1000,
        force_polling: bool = False,
    ):
        self.tail = LogTail(
            path, poll_interval_ms=poll_interval_ms, force_polling=force_polling
        )
        # The parser and its UUID cache are only touched from the watch task
        self.parser = LogParser(custom_death_keywords=custom_death_keywords)

    @property
    def path(self) -> Path:
        return self.tail.path

    def get_uuid(self, name: str) -> Optional[str]:
        return self.parser.get_uuid(name)

    async def start(self) -> None:
        """Open the log file at its current end.

        Raises:
            LogFileNotFoundError: If the log file does not exist
        """
        await self.tail.start()

    async def watch(self, pipeline: MessagePipeline) -> None:
        """Follow the log and put every recognized message into the pipeline.

        Blocks while the pipeline is full. Returns once the watcher is closed.

        Raises:
            LogFileNotFoundError: If the log file does not exist
            LogFollowError: If following the file fails
        """
        async for line in self.tail.lines():
            message = self.parser.parse_line(line)
            if message is None:
                continue
            logger.debug(f"Parsed message from Minecraft: {message!r}")
            await pipeline.put(message)

    def close(self) -> None:
        """Stop following the log file."""
        self.tail.close()
