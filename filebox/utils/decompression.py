"""
Archive extraction through the 7z executable.

Extraction is an optional capability: whether the binary exists is resolved
once and cached. Without it, decompress fails with ``UnsupportedError``
instead of producing anything.
"""

import shutil
from functools import lru_cache

from aiofiles import os as aioos
from asyncer import asyncify
from pydantic import BaseModel

from ..config import settings
from ..exceptions import FileboxError, InvalidInputError, NotFoundError, UnsupportedError
from ..files.naming import claim_unique_path, strip_archive_extension
from ..files.paths import PathResolver
from ..files.reader import read_entry
from ..files.types import Entry
from ..logger import logger
from .exec import async_rmtree, exec_command


class ArchiveExtractor(BaseModel):
    """The extraction capability; ``binary`` is None when it is missing."""

    binary: str | None = None

    @property
    def available(self) -> bool:
        return self.binary is not None


def resolve_extractor(binary_name: str | None = None) -> ArchiveExtractor:
    binary = shutil.which(binary_name or settings.archive.seven_zip_binary)
    if binary is None:
        logger.warning("7z executable not found; archive extraction is disabled")
    return ArchiveExtractor(binary=binary)


@lru_cache
def get_archive_extractor() -> ArchiveExtractor:
    return resolve_extractor()


async def decompress_archive(
    resolver: PathResolver, extractor: ArchiveExtractor, archive_path: str
) -> Entry:
    """
    Extract an archive into a new sibling folder named after it.

    ``photos.zip`` extracts into ``photos``, or ``photos (1)`` and so on when
    the name is taken. If extraction fails the new folder is removed before
    the error propagates.

    Raises:
        UnsupportedError: extraction capability is missing
        NotFoundError: the archive does not exist
        InvalidInputError: the path is a folder or not a readable archive
    """
    if not extractor.available:
        raise UnsupportedError("Archive extraction is not supported on this server")

    archive = resolver.resolve(archive_path)
    if not await aioos.path.exists(archive):
        raise NotFoundError(f"Archive not found: {archive_path}")
    if not await aioos.path.isfile(archive):
        raise InvalidInputError(f"Path is not a file: {archive_path}")

    folder_name = strip_archive_extension(archive.name)
    destination = await asyncify(claim_unique_path)(archive.parent, folder_name, True)

    try:
        await exec_command(
            extractor.binary,  # type: ignore[arg-type]
            "x",
            str(archive),
            f"-o{destination}",
            "-y",
            "-bd",
        )
    except Exception as e:
        if await aioos.path.exists(destination):
            await async_rmtree(destination)
        logger.warning(f"Extraction of {archive_path} failed: {e}")

        error_msg = str(e)
        if "Can not open" in error_msg or "is not supported archive" in error_msg:
            raise InvalidInputError("Archive is damaged or in an unsupported format")
        raise FileboxError(f"Failed to extract archive: {archive.name}") from e

    logger.info(f"Extracted {archive_path} into {resolver.to_entry_path(destination)}")
    return await read_entry(resolver, resolver.to_entry_path(destination))
