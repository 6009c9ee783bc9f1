"""
Extension to category folder table used by categorize.
"""

from pathlib import PurePosixPath
from typing import Dict, Optional

OTHER_CATEGORY = "Other"

_CATEGORY_EXTENSIONS: Dict[str, tuple[str, ...]] = {
    "Pictures": (
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".tif",
        ".tiff", ".heic", ".ico", ".raw",
    ),
    "Videos": (".mp4", ".mkv", ".mov", ".avi", ".wmv", ".flv", ".webm", ".m4v"),
    "Music": (".mp3", ".wav", ".flac", ".aac", ".ogg", ".m4a", ".wma", ".opus"),
    "Documents": (
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt",
        ".ods", ".odp", ".txt", ".md", ".rtf", ".csv",
    ),
    "Archives": (".zip", ".rar", ".7z", ".tar", ".gz", ".bz2", ".xz", ".tgz"),
}

EXTENSION_CATEGORIES: Dict[str, str] = {
    extension: category
    for category, extensions in _CATEGORY_EXTENSIONS.items()
    for extension in extensions
}


def categorize_name(name: str) -> Optional[str]:
    """Category folder for ``name``, or None when it has no extension."""
    suffix = PurePosixPath(name).suffix.lower()
    if not suffix:
        return None
    return EXTENSION_CATEGORIES.get(suffix, OTHER_CATEGORY)
