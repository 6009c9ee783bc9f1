"""
Command execution and blocking filesystem helpers run off the event loop.
"""

import asyncio
import shutil
from pathlib import Path

from asyncer import asyncify

from ..logger import logger


@asyncify
def async_rmtree(path: Path):
    """Asynchronously remove a directory tree."""
    shutil.rmtree(path)


@asyncify
def async_copytree(source: Path, target: Path):
    """Copy a folder's contents into ``target``, which may already exist."""
    shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True)


@asyncify
def async_copyfile(source: Path, target: Path):
    """Copy file data and metadata over ``target``."""
    shutil.copy2(source, target, follow_symlinks=False)


async def exec_command(
    command: str,
    *args: str,
    cwd: str | None = None,
) -> str:
    """
    Execute command with arguments asynchronously.

    Args:
        command: Command to execute
        *args: Command arguments
        cwd: Working directory

    Returns:
        Command output as string

    Raises:
        RuntimeError: If command exits with a non-zero status
        FileNotFoundError: If the command is not installed
    """
    logger.debug(f"Executing {command} {' '.join(args)}")
    process = await asyncio.create_subprocess_exec(
        command,
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    stdout, stderr = await process.communicate()
    if stdout is None:  # type: ignore
        stdout = b""
    if stderr is None:  # type: ignore
        stderr = b""

    if process.returncode != 0:
        raise RuntimeError(
            f"Failed to exec command: {command}\n{stderr.decode(errors='replace')}\n"
            f"{stdout.decode(errors='replace')}"
        )
    return stdout.decode(errors="replace")
