"""Tests for LogTail following real files."""

import asyncio
import os
from pathlib import Path
from typing import List

import pytest

from dolphin_send.log_monitor.errors import LogFileNotFoundError
from dolphin_send.log_monitor.tail import LogTail

HISTORY = "[12:00:00] [Server thread/INFO]: Starting minecraft server version 1.20.4\n"


class TailReader:
    """Consumes a tail in the background and queues its lines."""

    def __init__(self, tail: LogTail):
        self.tail = tail
        self.queue: asyncio.Queue = asyncio.Queue()
        self.task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        async for line in self.tail.lines():
            await self.queue.put(line)

    async def next_lines(self, count: int, timeout: float = 5.0) -> List[str]:
        return [
            await asyncio.wait_for(self.queue.get(), timeout=timeout)
            for _ in range(count)
        ]

    async def stop(self) -> None:
        self.tail.close()
        await asyncio.wait_for(self.task, timeout=5.0)


def append(path: Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)


@pytest.fixture
def log_path(tmp_path):
    path = tmp_path / "latest.log"
    path.write_text(HISTORY * 3, encoding="utf-8")
    return path


@pytest.fixture
def tail(log_path):
    return LogTail(log_path, poll_interval_ms=50, force_polling=True)


class TestLogTailStart:
    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        tail = LogTail(tmp_path / "missing.log")

        with pytest.raises(LogFileNotFoundError):
            await tail.start()

    @pytest.mark.asyncio
    async def test_missing_file_when_iterating(self, tmp_path):
        tail = LogTail(tmp_path / "missing.log")

        with pytest.raises(LogFileNotFoundError):
            async for _ in tail.lines():
                pass

    @pytest.mark.asyncio
    async def test_starts_at_end_of_file(self, tail, log_path, caplog):
        await tail.start()

        assert tail.position == log_path.stat().st_size
        assert "Using Minecraft log file at" in caplog.text

    def test_path_is_absolute(self, log_path, monkeypatch):
        monkeypatch.chdir(log_path.parent)

        tail = LogTail("latest.log")

        assert tail.path == log_path.absolute()


class TestLogTailFollow:
    @pytest.mark.asyncio
    async def test_yields_only_appended_lines(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            append(log_path, "first new line\nsecond new line\n")

            lines = await reader.next_lines(2)

            assert lines == ["first new line", "second new line"]
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_lines_in_file_order(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            for i in range(5):
                append(log_path, f"line {i}\n")
                await asyncio.sleep(0.01)

            lines = await reader.next_lines(5)

            assert lines == [f"line {i}" for i in range(5)]
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_partial_line_buffered(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            append(log_path, "half of a ")
            await asyncio.sleep(0.3)

            assert reader.queue.empty()

            append(log_path, "line\r\n")

            assert await reader.next_lines(1) == ["half of a line"]
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_truncated_file_read_from_beginning(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            log_path.write_text("after truncate\n", encoding="utf-8")

            assert await reader.next_lines(1) == ["after truncate"]
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_rotated_file_read_from_beginning(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            replacement = log_path.parent / "latest.log.new"
            replacement.write_text(
                HISTORY * 10 + "fresh server log\n", encoding="utf-8"
            )
            os.replace(replacement, log_path)

            lines = await reader.next_lines(11)

            assert lines[-1] == "fresh server log"
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_lines_written_before_rotation_kept(self, log_path):
        tail = LogTail(log_path, poll_interval_ms=200, force_polling=True)
        await tail.start()
        reader = TailReader(tail)
        try:
            await asyncio.sleep(0.3)
            # Server writes its last lines and rotates before the next poll
            append(log_path, "Stopping the server\nTestUser left")
            os.replace(log_path, log_path.parent / "2026-10-19-1.log")
            log_path.write_text("fresh\n", encoding="utf-8")

            lines = await reader.next_lines(3)

            assert lines == ["Stopping the server", "TestUser left", "fresh"]
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_rewritten_past_cursor_read_from_beginning(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            # Truncate and grow beyond the old read position in one go
            new_lines = [f"rewritten line number {i:03d}" for i in range(20)]
            log_path.write_text("\n".join(new_lines) + "\n", encoding="utf-8")

            assert log_path.stat().st_size > tail.position
            assert await reader.next_lines(20) == new_lines
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_waits_for_deleted_file(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            log_path.unlink()
            await asyncio.sleep(0.2)
            log_path.write_text("recreated\n", encoding="utf-8")

            assert await reader.next_lines(1) == ["recreated"]
        finally:
            await reader.stop()

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self, tail, log_path):
        await tail.start()
        reader = TailReader(tail)
        try:
            with open(log_path, "ab") as f:
                f.write(b"bad \xff byte\n")

            assert await reader.next_lines(1) == ["bad � byte"]
        finally:
            await reader.stop()


class TestLogTailClose:
    @pytest.mark.asyncio
    async def test_close_ends_iteration(self, tail):
        await tail.start()
        reader = TailReader(tail)
        await asyncio.sleep(0.1)

        await reader.stop()

        assert reader.task.done()
        assert tail.closed

    @pytest.mark.asyncio
    async def test_close_twice_warns(self, tail, caplog):
        tail.close()
        tail.close()

        assert "already closed" in caplog.text
