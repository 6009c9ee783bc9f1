"""
Directory listing, name search and folder-download manifests.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, List, Tuple

from aiofiles import os as aioos
from asyncer import asyncify

from ..exceptions import InvalidInputError, NotFoundError
from ..logger import logger
from .paths import PathResolver, join_entry_path
from .types import Entry, EntryKind


def sort_key(entry: Entry) -> tuple:
    """Folders before files, then by name ignoring case, then exact name."""
    return (entry.type != EntryKind.FOLDER, entry.name.casefold(), entry.name)


def _scan_directory(directory: Path, entry_dir: str) -> List[Entry]:
    """Read the immediate children of ``directory`` as unsorted entries."""
    entries = []
    with os.scandir(directory) as it:
        for dirent in it:
            try:
                stat_result = dirent.stat()
                is_folder = dirent.is_dir()
            except FileNotFoundError:
                # Removed while listing, or a dangling symlink
                logger.debug(f"Skipping vanished entry {dirent.path}")
                continue

            entries.append(
                Entry(
                    name=dirent.name,
                    type=EntryKind.FOLDER if is_folder else EntryKind.FILE,
                    size=0 if is_folder else stat_result.st_size,
                    last_modified=datetime.fromtimestamp(stat_result.st_mtime),
                    path=join_entry_path(entry_dir, dirent.name),
                )
            )
    return entries


scan_directory = asyncify(_scan_directory)


async def require_directory(resolver: PathResolver, path: str) -> Path:
    directory = resolver.resolve(path)
    if not await aioos.path.exists(directory):
        raise NotFoundError(f"Folder not found: {path}")
    if not await aioos.path.isdir(directory):
        raise InvalidInputError(f"Path is not a folder: {path}")
    return directory


async def read_entry(resolver: PathResolver, path: str) -> Entry:
    """Build the Entry for a single path."""
    target = resolver.resolve(path)
    try:
        stat_result = await aioos.stat(target)
    except FileNotFoundError:
        raise NotFoundError(f"Entry not found: {path}")

    is_folder = await aioos.path.isdir(target)
    return Entry(
        name=target.name or "/",
        type=EntryKind.FOLDER if is_folder else EntryKind.FILE,
        size=0 if is_folder else stat_result.st_size,
        last_modified=datetime.fromtimestamp(stat_result.st_mtime),
        path=resolver.to_entry_path(target),
    )


async def list_entries(resolver: PathResolver, path: str = "/") -> List[Entry]:
    """List the immediate children of a folder, folders first."""
    directory = await require_directory(resolver, path)
    entries = await scan_directory(directory, resolver.to_entry_path(directory))
    return sorted(entries, key=sort_key)


async def walk_folders(
    resolver: PathResolver, directory: Path
) -> AsyncIterator[Tuple[str, List[Entry]]]:
    """Yield ``(folder_path, sorted_children)`` depth-first from ``directory``.

    Explicit stack, no recursion. Symlinked folders are reported as entries
    but not descended into, so the walk always terminates.
    """
    stack = [resolver.to_entry_path(directory)]
    while stack:
        current = stack.pop()
        current_dir = resolver.resolve(current)
        try:
            entries = sorted(await scan_directory(current_dir, current), key=sort_key)
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            logger.warning(f"Skipping unreadable folder {current}: {e}")
            continue

        yield current, entries

        # Reversed so the first subfolder is visited first
        for entry in reversed(entries):
            if entry.is_folder and not await aioos.path.islink(current_dir / entry.name):
                stack.append(entry.path)


async def search_entries(
    resolver: PathResolver, root_path: str, query: str
) -> List[Entry]:
    """Find every entry beneath ``root_path`` whose name contains ``query``.

    Matching ignores case and applies to files and folders alike. Each
    folder's matches come in listing order before its subfolders' matches.
    """
    if not query:
        raise InvalidInputError("Search query must not be empty")

    directory = await require_directory(resolver, root_path)
    needle = query.casefold()
    results: List[Entry] = []
    async for _, entries in walk_folders(resolver, directory):
        results.extend(entry for entry in entries if needle in entry.name.casefold())
    return results


async def list_files_recursive(resolver: PathResolver, path: str = "/") -> List[str]:
    """Paths of every file beneath ``path``, used to build folder downloads."""
    directory = await require_directory(resolver, path)
    files: List[str] = []
    async for _, entries in walk_folders(resolver, directory):
        files.extend(entry.path for entry in entries if not entry.is_folder)
    return files
