"""
File operations on the sandboxed store.

Every path goes through ``PathResolver`` before anything touches the disk.
Batch operations (delete/copy/move/categorize) resolve the whole selection
first, so a single escaping path rejects the batch before any unit runs.
After that, units execute concurrently and commit independently: a failing
unit neither cancels its siblings nor rolls back the ones that finished.
"""

import asyncio
import errno
import os
import uuid
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import aiofiles
from aiofiles import os as aioos
from asyncer import asyncify

from ..exceptions import (
    BatchOperationError,
    ConflictError,
    FileboxError,
    InvalidInputError,
    NotFoundError,
    PartialFailureError,
)
from ..logger import logger
from ..utils.exec import async_copyfile, async_copytree, async_rmtree
from .categories import categorize_name
from .naming import claim_unique_path, split_extension
from .paths import (
    ROOT_ENTRY_PATH,
    PathResolver,
    join_entry_path,
    validate_entry_name,
)
from .planner import BatchState, reduce_to_top_level
from .reader import read_entry, require_directory
from .types import Entry

ProgressSink = Callable[[int], None]

_claim_unique_path = asyncify(claim_unique_path)
_lexists = asyncify(os.path.lexists)


# Batch plumbing
def _resolve_selection(resolver: PathResolver, paths: List[str]) -> Dict[str, Path]:
    """Resolve every path, then keep only the top-level ones.

    Keys are canonical entry paths, values the absolute paths.
    """
    if not paths:
        raise InvalidInputError("No paths given")

    resolved: Dict[str, Path] = {}
    for path in paths:
        absolute = resolver.resolve(path)
        resolved[resolver.to_entry_path(absolute)] = absolute

    return {path: resolved[path] for path in reduce_to_top_level(resolved)}


async def _run_batch(
    operation: str,
    units: Dict[str, Callable[[], Awaitable[object]]],
) -> BatchState:
    """Run all units concurrently and fold their outcomes into one result."""
    logger.debug(f"{operation}: {BatchState.EXECUTING.value} {len(units)} unit(s)")
    paths = list(units)
    results = await asyncio.gather(
        *(units[path]() for path in paths), return_exceptions=True
    )

    failures: Dict[str, BaseException] = {
        path: result
        for path, result in zip(paths, results)
        if isinstance(result, BaseException)
    }
    if not failures:
        logger.info(f"{operation} completed for {len(paths)} item(s)")
        return BatchState.SUCCESS

    succeeded = [path for path in paths if path not in failures]
    details = "; ".join(f"{path}: {error}" for path, error in failures.items())
    message = f"{operation} failed for {len(failures)} of {len(paths)} item(s): {details}"

    if not succeeded:
        logger.warning(f"{operation}: {BatchState.FAILURE.value}: {details}")
        if len(failures) == 1:
            raise next(iter(failures.values()))
        raise BatchOperationError(message, failures)  # type: ignore[arg-type]

    logger.warning(f"{operation}: {BatchState.PARTIAL_FAILURE.value}: {details}")
    raise PartialFailureError(message, failures, succeeded)  # type: ignore[arg-type]


def _contains_or_is(folder: Path, path: Path) -> bool:
    return path == folder or folder in path.parents


# Single-entry operations
async def create_folder(resolver: PathResolver, parent_path: str, name: str) -> Entry:
    """Create ``parent_path/name``, including any missing parents."""
    validate_entry_name(name)
    entry_path = join_entry_path(parent_path, name)
    target = resolver.resolve(entry_path)

    if await _lexists(target):
        raise ConflictError(f"An entry named '{name}' already exists")

    await aioos.makedirs(target)
    logger.info(f"Created folder {entry_path}")
    return await read_entry(resolver, entry_path)


async def iter_bytes(data: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    for offset in range(0, len(data), chunk_size):
        yield data[offset : offset + chunk_size]


async def upload_file(
    resolver: PathResolver,
    parent_path: str,
    name: str,
    chunks: AsyncIterable[bytes],
    total_size: Optional[int] = None,
    on_progress: Optional[ProgressSink] = None,
) -> Entry:
    """
    Stream ``chunks`` into ``parent_path/name``, replacing an existing file.

    The data lands in a temporary sibling first and replaces the target only
    once complete, so a broken transfer never clobbers the old file.
    ``on_progress`` receives whole percentages and is only used when
    ``total_size`` is known.
    """
    validate_entry_name(name)
    directory = resolver.resolve(parent_path)
    await aioos.makedirs(directory, exist_ok=True)
    if not await aioos.path.isdir(directory):
        raise InvalidInputError(f"Target path is not a folder: {parent_path}")

    target = directory / name
    if await aioos.path.isdir(target):
        raise ConflictError(f"A folder named '{name}' already exists")

    partial = directory / f".{name}.{uuid.uuid4().hex}.part"
    report_progress = on_progress if total_size else None
    written = 0
    last_percent = -1
    try:
        async with aiofiles.open(partial, "wb") as f:
            async for chunk in chunks:
                await f.write(chunk)
                written += len(chunk)
                if report_progress:
                    percent = min(100, written * 100 // total_size)  # type: ignore[operator]
                    if percent != last_percent:
                        last_percent = percent
                        report_progress(percent)
        await aioos.replace(partial, target)
    except BaseException:
        if await _lexists(partial):
            await aioos.remove(partial)
        raise

    entry_path = resolver.to_entry_path(target)
    logger.info(f"Uploaded {entry_path} ({written} bytes)")
    return await read_entry(resolver, entry_path)


async def rename_entry(resolver: PathResolver, entry_path: str, new_name: str) -> Entry:
    """Rename an entry within its folder."""
    validate_entry_name(new_name)
    source = resolver.resolve(entry_path)
    if source == resolver.root:
        raise InvalidInputError("The root folder cannot be renamed")
    if not await _lexists(source):
        raise NotFoundError(f"Entry not found: {entry_path}")

    target = resolver.resolve(join_entry_path(resolver.to_entry_path(source.parent), new_name))
    if await _lexists(target):
        raise ConflictError(f"An entry named '{new_name}' already exists")

    await aioos.rename(source, target)
    new_path = resolver.to_entry_path(target)
    logger.info(f"Renamed {entry_path} to {new_path}")
    return await read_entry(resolver, new_path)


# Batch operations
async def delete_entries(resolver: PathResolver, paths: List[str]) -> BatchState:
    """Delete files and folders; folders go with everything beneath them.

    Paths that no longer exist are skipped.
    """
    selection = _resolve_selection(resolver, paths)
    if ROOT_ENTRY_PATH in selection:
        raise InvalidInputError("The root folder cannot be deleted")

    async def delete_one(path: str, target: Path) -> None:
        if not await _lexists(target):
            logger.debug(f"Skipping delete of missing entry {path}")
            return
        if await aioos.path.isdir(target) and not await aioos.path.islink(target):
            await async_rmtree(target)
        else:
            await aioos.remove(target)

    return await _run_batch(
        "Delete",
        {
            path: (lambda path=path, target=target: delete_one(path, target))
            for path, target in selection.items()
        },
    )


async def copy_entries(
    resolver: PathResolver, paths: List[str], destination_path: str
) -> BatchState:
    """
    Copy entries into ``destination_path``.

    A name that is already taken gets the next free ``name (n)`` variant.
    Folders copy their whole subtree; children keep their names since they
    land in a freshly created folder.
    """
    destination = await require_directory(resolver, destination_path)
    selection = _resolve_selection(resolver, paths)

    async def copy_one(path: str, source: Path) -> None:
        if not await _lexists(source):
            raise NotFoundError(f"Entry not found: {path}")

        if await aioos.path.isdir(source) and not await aioos.path.islink(source):
            if _contains_or_is(source, destination):
                raise InvalidInputError(f"Cannot copy folder {path} into itself")
            target = await _claim_unique_path(destination, source.name, True)
            copier = async_copytree
        else:
            target = await _claim_unique_path(destination, source.name, False)
            copier = async_copyfile

        try:
            await copier(source, target)
        except BaseException:
            if await aioos.path.isdir(target):
                await async_rmtree(target)
            elif await _lexists(target):
                await aioos.remove(target)
            raise
        logger.debug(f"Copied {path} to {resolver.to_entry_path(target)}")

    return await _run_batch(
        "Copy",
        {
            path: (lambda path=path, source=source: copy_one(path, source))
            for path, source in selection.items()
        },
    )


async def _move_into(resolver: PathResolver, path: str, source: Path, destination: Path) -> None:
    """Atomically rename one entry into ``destination`` without overwriting."""
    if source == resolver.root:
        raise InvalidInputError("The root folder cannot be moved")
    if not await _lexists(source):
        raise NotFoundError(f"Entry not found: {path}")
    if source.parent == destination:
        return
    if _contains_or_is(source, destination):
        raise InvalidInputError(f"Cannot move folder {path} into itself")

    target = destination / source.name
    if await _lexists(target):
        raise ConflictError(
            f"An entry named '{source.name}' already exists in "
            f"{resolver.to_entry_path(destination)}"
        )

    try:
        await aioos.rename(source, target)
    except OSError as e:
        if e.errno == errno.EXDEV:
            raise FileboxError(f"Cannot move {path} across storage devices") from e
        raise
    logger.debug(f"Moved {path} to {resolver.to_entry_path(target)}")


async def move_entries(
    resolver: PathResolver, paths: List[str], destination_path: str
) -> BatchState:
    """
    Move entries into ``destination_path``.

    Each entry moves with one atomic rename. Unlike copy there is no
    renaming on collision: a taken name fails that entry with a conflict.
    The one exception: an entry whose parent already is the destination is
    left alone and counts as moved, not as a conflict with itself.
    """
    destination = await require_directory(resolver, destination_path)
    selection = _resolve_selection(resolver, paths)

    return await _run_batch(
        "Move",
        {
            path: (
                lambda path=path, source=source: _move_into(
                    resolver, path, source, destination
                )
            )
            for path, source in selection.items()
        },
    )


async def categorize_entries(
    resolver: PathResolver, paths: List[str], current_path: str
) -> BatchState:
    """
    Sort files into category folders (Pictures, Videos, ...) under
    ``current_path`` based on their extension.

    Folders and names without an extension are skipped.
    """
    base = await require_directory(resolver, current_path)
    if not paths:
        raise InvalidInputError("No paths given")

    planned: Dict[str, tuple[Path, Path]] = {}
    for path in paths:
        source = resolver.resolve(path)
        entry_path = resolver.to_entry_path(source)
        if not await _lexists(source):
            raise NotFoundError(f"Entry not found: {entry_path}")
        if await aioos.path.isdir(source):
            logger.debug(f"Categorize skips folder {entry_path}")
            continue
        category = categorize_name(source.name)
        if category is None:
            logger.debug(f"Categorize skips {entry_path}: no extension")
            continue
        planned[entry_path] = (source, base / category)

    for category_dir in {category_dir for _, category_dir in planned.values()}:
        if await _lexists(category_dir) and not await aioos.path.isdir(
            category_dir
        ):
            raise ConflictError(
                f"'{category_dir.name}' exists and is not a folder"
            )
        await aioos.makedirs(category_dir, exist_ok=True)

    if not planned:
        logger.info("Categorize: nothing to move")
        return BatchState.SUCCESS

    return await _run_batch(
        "Categorize",
        {
            path: (
                lambda path=path, source=source, target=target: _move_into(
                    resolver, path, source, target
                )
            )
            for path, (source, target) in planned.items()
        },
    )


# Text files
async def create_text_file(
    resolver: PathResolver, parent_path: str, name: str, content: str = ""
) -> Entry:
    """Create a new text file; ``.txt`` is appended when ``name`` has no extension."""
    validate_entry_name(name)
    if not split_extension(name)[1]:
        name = f"{name}.txt"

    directory = resolver.resolve(parent_path)
    await aioos.makedirs(directory, exist_ok=True)
    target = resolver.resolve(join_entry_path(resolver.to_entry_path(directory), name))

    try:
        async with aiofiles.open(target, "x", encoding="utf-8") as f:
            await f.write(content)
    except FileExistsError:
        raise ConflictError(f"An entry named '{name}' already exists")

    entry_path = resolver.to_entry_path(target)
    logger.info(f"Created text file {entry_path}")
    return await read_entry(resolver, entry_path)


async def _require_file(resolver: PathResolver, path: str) -> Path:
    file_path = resolver.resolve(path)
    if not await aioos.path.exists(file_path):
        raise NotFoundError(f"File not found: {path}")
    if not await aioos.path.isfile(file_path):
        raise InvalidInputError(f"Path is not a file: {path}")
    return file_path


async def get_file_content(resolver: PathResolver, path: str) -> str:
    """Read a file as text, falling back to latin-1 for non-UTF-8 data."""
    file_path = await _require_file(resolver, path)
    try:
        async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
            return await f.read()
    except UnicodeDecodeError:
        async with aiofiles.open(file_path, "r", encoding="latin1") as f:
            return await f.read()


async def update_file_content(resolver: PathResolver, path: str, content: str) -> None:
    file_path = await _require_file(resolver, path)
    async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
        await f.write(content)
    logger.info(f"Updated {resolver.to_entry_path(file_path)}")


async def get_download_path(resolver: PathResolver, path: str) -> Path:
    """Absolute path of a file to stream back to the client."""
    return await _require_file(resolver, path)
