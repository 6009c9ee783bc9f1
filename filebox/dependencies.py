from .config import settings
from .files import PathResolver
from .utils.decompression import ArchiveExtractor, get_archive_extractor


def get_resolver() -> PathResolver:
    """Resolver for the configured sandbox root."""
    return PathResolver(settings.root_path)


def get_extractor() -> ArchiveExtractor:
    return get_archive_extractor()
