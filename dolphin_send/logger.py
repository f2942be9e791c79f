import functools
import gzip
import inspect
import logging
import logging.handlers
import os
import shutil
import sys
from gzip import GzipFile
from pathlib import Path
from typing import Awaitable, Callable, Optional, ParamSpec, TypeVar

logger = logging.getLogger("dolphin_send")
logger.setLevel(logging.INFO)
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)

log_stream_handler = logging.StreamHandler(sys.stdout)
log_stream_handler.setFormatter(formatter)
logger.addHandler(log_stream_handler)


def rotator(source, dest):
    with open(source, "rb") as f_in:
        with gzip.open(dest + ".gz", "wb") as f_out:
            assert isinstance(f_out, GzipFile)
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


def configure_logging(debug: bool = False, logs_dir: Optional[Path] = None) -> None:
    """Apply runtime logging options.

    Args:
        debug: Log at DEBUG level instead of INFO
        logs_dir: If given, also write to a midnight-rotated, gzip compressed
            ``dolphin-send.log`` inside this directory
    """
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if logs_dir is None:
        return

    logs_dir = Path(logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "dolphin-send.log"

    for handler in logger.handlers:
        if isinstance(handler, logging.handlers.TimedRotatingFileHandler) and Path(
            handler.baseFilename
        ) == log_file.resolve():
            return

    log_file_handler = logging.handlers.TimedRotatingFileHandler(
        log_file, when="midnight"
    )
    log_file_handler.setFormatter(formatter)
    log_file_handler.rotator = rotator
    logger.addHandler(log_file_handler)


P = ParamSpec("P")
R = TypeVar("R")


def log_exception(
    prefix: str = "",
    default_return: R | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Decorator that logs and swallows exceptions raised by a coroutine function.

    The call arguments (except ``self``) are included in the log line and the
    stacklevel points at the decorated function's caller.

    Args:
        prefix: Optional prefix to prepend to the error message
        default_return: Value returned instead of raising

    Usage:
        @log_exception("Error delivering message", default_return=False)
        async def send(self, message):
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"{func.__qualname__} is not a coroutine function")

        sig = inspect.signature(func)
        prefix_str = f"{prefix}: " if prefix else ""

        def format_args(args: tuple, kwargs: dict) -> str:
            try:
                bound = sig.bind(*args, **kwargs)
            except TypeError:
                return f"[args={args!r}, kwargs={kwargs!r}] "
            bound.apply_defaults()
            params = ", ".join(
                f"{k}={v!r}" for k, v in bound.arguments.items() if k != "self"
            )
            return f"[{params}] " if params else ""

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{format_args(args, kwargs)}{prefix_str}{type(e).__name__}: {e}",
                    exc_info=True,
                    stacklevel=2,
                )
                return default_return  # type: ignore[return-value]

        return wrapper

    return decorator
