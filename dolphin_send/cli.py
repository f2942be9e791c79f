"""Command line entry point for dolphin-send."""

import argparse
import asyncio
import signal
import sys
from typing import Any, Dict, Optional, Sequence

from pydantic import ValidationError

from . import __version__
from .config import Settings
from .delivery import MessageSender
from .events import MessagePipeline
from .log_monitor import LogMonitorError, MinecraftWatcher
from .logger import configure_logging, logger

# Seconds to wait for each task to wind down after a stop signal
SHUTDOWN_TIMEOUT = 5.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dolphin-send",
        description="Send Minecraft server log events to another server over HTTP",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Print additional debugging messages",
    )
    parser.add_argument(
        "-a",
        "--address",
        type=str,
        help="Set the hostname to send Minecraft messages to",
    )
    parser.add_argument(
        "-p", "--port", type=int, help="Set the port of the receiving server"
    )
    parser.add_argument(
        "-l", "--log", type=str, help="Set the path to the server log to watch"
    )
    parser.add_argument(
        "-k",
        "--death-keyword",
        action="append",
        dest="death_keywords",
        metavar="KEYWORD",
        help="Extra phrase that marks a death message (repeatable)",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Prints version information and exits",
    )
    return parser


def settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Turn the given command line options into Settings init arguments."""
    delivery: Dict[str, Any] = {}
    if args.address is not None:
        delivery["host"] = args.address
    if args.port is not None:
        delivery["port"] = args.port

    watcher: Dict[str, Any] = {}
    if args.log is not None:
        watcher["log_path"] = args.log
    if args.death_keywords:
        watcher["death_keywords"] = args.death_keywords

    overrides: Dict[str, Any] = {}
    if args.debug is not None:
        overrides["debug"] = args.debug
    if delivery:
        overrides["delivery"] = delivery
    if watcher:
        overrides["watcher"] = watcher
    return overrides


async def _finish(task: asyncio.Task, timeout: float = SHUTDOWN_TIMEOUT) -> None:
    """Give a task time to end on its own, then cancel it."""
    try:
        await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
    except asyncio.TimeoutError:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    except Exception as e:
        logger.debug(f"Task {task.get_name()} ended with {type(e).__name__}: {e}")


async def run(settings: Settings) -> int:
    """Run the watcher and the sender until a stop signal arrives.

    Returns:
        Process exit code
    """
    watcher = MinecraftWatcher(
        settings.watcher.log_path,
        custom_death_keywords=settings.watcher.death_keywords,
        poll_interval_ms=settings.watcher.poll_interval_ms,
        force_polling=settings.watcher.force_polling,
    )
    pipeline = MessagePipeline(maxsize=settings.watcher.queue_size)

    async with MessageSender(
        settings.delivery.url, timeout=settings.delivery.timeout
    ) as sender:
        try:
            await watcher.start()
        except LogMonitorError as e:
            logger.critical(f"Error opening log file: {e}")
            return 1

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        watch_task = asyncio.create_task(watcher.watch(pipeline))
        send_task = asyncio.create_task(sender.run(pipeline))
        stop_task = asyncio.create_task(stop_event.wait())

        exit_code = 0
        try:
            await asyncio.wait(
                {watch_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )

            if watch_task.done() and not watch_task.cancelled():
                error = watch_task.exception()
                if error is not None:
                    logger.critical(f"Error trying to tail log file: {error}")
                    exit_code = 1

            try:
                watcher.close()
            except Exception as e:
                logger.critical(f"Error while closing: {e}")
                exit_code = 1

            await _finish(watch_task)
            try:
                await asyncio.wait_for(pipeline.close(), timeout=SHUTDOWN_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Message sender did not drain the queue in time")
            await _finish(send_task)
        finally:
            stop_task.cancel()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    if exit_code == 0:
        logger.info("Dolphin sender shut down successfully!")
    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"dolphin-send version {__version__}")
        sys.exit(0)

    try:
        settings = Settings(**settings_overrides(args))
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(debug=settings.debug, logs_dir=settings.logs_dir)
    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":
    main()
