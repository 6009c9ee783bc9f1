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
from typing import Callable

from .config import settings

logger = logging.getLogger("filebox")
logger.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)

logs_dir = Path(settings.logs_dir)
logs_dir.mkdir(parents=True, exist_ok=True)


def rotator(source, dest):
    with open(source, "rb") as f_in:
        with gzip.open(dest + ".gz", "wb") as f_out:
            assert isinstance(f_out, GzipFile)
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


log_file_handler = logging.handlers.TimedRotatingFileHandler(
    logs_dir / "filebox.log", when="midnight"
)
log_file_handler.setFormatter(formatter)
log_file_handler.rotator = rotator
logger.addHandler(log_file_handler)

log_stream_handler = logging.StreamHandler(sys.stdout)
log_stream_handler.setFormatter(formatter)
logger.addHandler(log_stream_handler)


def log_exception[**P, R](
    prefix: str = "",
    default_return: R | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for best-effort calls: log any exception with the bound
    arguments and return ``default_return`` instead of raising.

    Works on both sync and async functions. The prefix may reference the
    wrapped function's parameters, e.g. ``"Refresh after {target_dir}"``.

    Usage:
        @log_exception("Refresh listing")
        async def refresh():
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func)
        func_name = func.__qualname__

        def format_args_kwargs(args: tuple, kwargs: dict) -> tuple[dict, str]:
            try:
                bound = sig.bind(*args, **kwargs)
                bound.apply_defaults()
                params = ", ".join(f"{k}={v!r}" for k, v in bound.arguments.items())
                return bound.arguments, f"[{params}] " if params else ""
            except TypeError as e:
                logger.warning(
                    f"Failed to bind arguments for function {func_name}: {e}",
                    stacklevel=4,
                )
                parts = []
                if args:
                    parts.append(f"args={args!r}")
                if kwargs:
                    parts.append(f"kwargs={kwargs!r}")
                return {}, f"[{', '.join(parts)}] " if parts else ""

        def format_prefix(bound_args: dict) -> str:
            if not prefix:
                return ""
            if "{" in prefix and "}" in prefix:
                try:
                    return f"{prefix.format_map(bound_args)}: "
                except (KeyError, ValueError) as e:
                    logger.warning(
                        f"Failed to format prefix '{prefix}' with arguments: {e}",
                        stacklevel=4,
                    )
            return f"{prefix}: "

        def report(e: Exception, args: tuple, kwargs: dict) -> None:
            bound_args, args_str = format_args_kwargs(args, kwargs)
            prefix_str = format_prefix(bound_args)
            logger.error(
                f"{args_str}{prefix_str}{type(e).__name__}: {e}",
                exc_info=True,
                stacklevel=3,
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    report(e, args, kwargs)
                    return default_return  # type: ignore[return-value]

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                report(e, args, kwargs)
                return default_return  # type: ignore[return-value]

        return sync_wrapper  # type: ignore[return-value]

    return decorator
