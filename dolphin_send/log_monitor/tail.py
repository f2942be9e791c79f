"""Log file following using watchfiles."""

import asyncio
import os
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union

import aiofiles
from aiofiles import os as aioos
from watchfiles import Change, awatch

from ..logger import logger
from .errors import LogFileNotFoundError, LogFollowError, LogMonitorError

# Bytes kept from just before the read position to detect in-place rewrites
FINGERPRINT_SIZE = 128


class LogTail:
    """Follows a growing log file from its end, like ``tail -F``.

    The file stays open while it is followed. When the server rotates the log
    (new inode, or the path disappears) the old handle is read to its end
    before the new file is opened and read from its beginning. When the file
    is truncated or rewritten in place, reading restarts at its beginning.
    """

    def __init__(
        self,
        path: Union[str, Path],
        poll_interval_ms: int = 1000,
        force_polling: bool = False,
    ):
        """Initialize log tail.

        Args:
            path: Path to the log file (typically logs/latest.log)
            poll_interval_ms: Longest time to wait before re-checking the file
                when no change notification arrives
            force_polling: Poll the directory instead of using OS notifications
        """
        self.path = Path(path).expanduser().absolute()
        self.poll_interval_ms = poll_interval_ms
        self.force_polling = force_polling

        self._file = None
        self._position = 0
        self._inode: Optional[int] = None
        # Bytes after the last newline, kept until the line is complete
        self._pending = b""
        self._fingerprint = b""

        self._stop_event = asyncio.Event()
        self._started = False
        self._closed = False

    @property
    def position(self) -> int:
        return self._position

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Check the log file and place the cursor at its current end.

        Raises:
            LogFileNotFoundError: If the file does not exist
        """
        if not await aioos.path.exists(self.path):
            raise LogFileNotFoundError(self.path)

        stat = await aioos.stat(self.path)
        self._inode = stat.st_ino
        self._position = stat.st_size
        self._pending = b""
        self._started = True
        logger.info(f"Using Minecraft log file at '{self.path}'")

    async def lines(self) -> AsyncIterator[str]:
        """Yield lines appended to the log file until the tail is closed.

        Raises:
            LogFileNotFoundError: If the file does not exist at start
            LogFollowError: If watching the file fails
        """
        if not self._started:
            await self.start()

        logger.info("Log watcher started and waiting for lines")

        try:
            await self._open(resume=True)

            async for changes in awatch(
                self.path.parent,
                watch_filter=None,
                stop_event=self._stop_event,
                rust_timeout=self.poll_interval_ms,
                yield_on_timeout=True,
                force_polling=self.force_polling,
                poll_delay_ms=self.poll_interval_ms,
                recursive=False,
            ):
                if self._stop_event.is_set():
                    break

                for change_type, changed_path in changes:
                    if Path(changed_path) != self.path:
                        continue
                    if change_type == Change.deleted:
                        logger.info(f"Log file deleted: {self.path}")
                    elif change_type == Change.added:
                        logger.info(f"Log file created: {self.path}")

                for line in await self._read_new_lines():
                    yield line

        except asyncio.CancelledError:
            logger.debug(f"Log tail cancelled for {self.path}")
            raise
        except LogMonitorError:
            raise
        except Exception as e:
            raise LogFollowError(f"Error following log file {self.path}: {e}") from e
        finally:
            await self._close_file()

        logger.debug(f"Stopped following {self.path}")

    def close(self) -> None:
        """Stop following the file and release the directory watch."""
        if self._closed:
            logger.warning(f"Log tail for {self.path} is already closed")
            return

        self._closed = True
        self._stop_event.set()
        logger.info(f"Stopped watching log file {self.path}")

    async def _open(self, resume: bool) -> None:
        """Open the file at the path.

        With ``resume`` the cursor is kept if the file is still the one seen
        by start(); otherwise reading starts at the beginning.
        """
        try:
            self._file = await aiofiles.open(self.path, "rb")
        except FileNotFoundError:
            self._file = None
            return

        inode = os.fstat(self._file.fileno()).st_ino
        if resume and inode == self._inode:
            start = max(0, self._position - FINGERPRINT_SIZE)
            await self._file.seek(start)
            self._fingerprint = await self._file.read(self._position - start)
        else:
            self._inode = inode
            self._position = 0
            self._pending = b""
            self._fingerprint = b""

    async def _close_file(self) -> None:
        if self._file is not None:
            await self._file.close()
            self._file = None

    async def _read_new_lines(self) -> List[str]:
        """Read whatever was appended since the last call."""
        lines: List[str] = []

        try:
            stat = await aioos.stat(self.path)
        except FileNotFoundError:
            stat = None

        if self._file is not None and (stat is None or stat.st_ino != self._inode):
            # Rotated: finish the old file through the handle still open on it
            lines.extend(await self._read_available())
            lines.extend(self._flush_pending())
            await self._close_file()

        if stat is None:
            return lines

        if self._file is None:
            logger.info(f"Log file replaced, reading {self.path} from beginning")
            await self._open(resume=False)
            if self._file is None:
                return lines
        elif await self._was_rewritten(stat.st_size):
            logger.info(f"Log file truncated, reading {self.path} from beginning")
            await self._file.seek(0)
            self._position = 0
            self._pending = b""
            self._fingerprint = b""

        lines.extend(await self._read_available())
        return lines

    async def _was_rewritten(self, size: int) -> bool:
        """Check whether the file was truncated since the last read.

        A truncated file can grow past the old cursor before we look at it
        again, so the bytes just before the cursor are compared too.
        """
        if size < self._position:
            return True
        if not self._fingerprint:
            return False

        await self._file.seek(self._position - len(self._fingerprint))
        current = await self._file.read(len(self._fingerprint))
        await self._file.seek(self._position)
        return current != self._fingerprint

    async def _read_available(self) -> List[str]:
        data = await self._file.read()
        if not data:
            return []

        self._position += len(data)
        self._fingerprint = (self._fingerprint + data)[-FINGERPRINT_SIZE:]
        return self._split_lines(data)

    def _flush_pending(self) -> List[str]:
        # The last line of a rotated file may never get its newline
        if not self._pending:
            return []
        line = self._pending.decode("utf-8", errors="replace").rstrip("\r")
        self._pending = b""
        return [line]

    def _split_lines(self, data: bytes) -> List[str]:
        chunks = (self._pending + data).split(b"\n")
        self._pending = chunks.pop()
        return [
            chunk.decode("utf-8", errors="replace").rstrip("\r") for chunk in chunks
        ]
