"""
Collision-free naming: ``report.txt`` -> ``report (1).txt`` -> ``report (2).txt``.
"""

import itertools
from pathlib import Path
from typing import Iterator, Tuple

# Checked longest first so "a.tar.gz" strips to "a"
ARCHIVE_SUFFIXES = (
    ".tar.gz", ".tar.bz2", ".tar.xz", ".tar.zst",
    ".tgz", ".tbz2", ".txz", ".zip", ".7z", ".rar", ".tar", ".gz", ".bz2", ".xz",
)


def split_extension(name: str) -> Tuple[str, str]:
    """Split at the last dot; a leading dot alone is not an extension."""
    index = name.rfind(".")
    if index <= 0:
        return name, ""
    return name[:index], name[index:]


def strip_archive_extension(name: str) -> str:
    lowered = name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lowered.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return split_extension(name)[0]


def candidate_names(name: str, keep_extension: bool = True) -> Iterator[str]:
    """``name`` itself, then numbered variants without end."""
    base, extension = split_extension(name) if keep_extension else (name, "")
    yield name
    for counter in itertools.count(1):
        yield f"{base} ({counter}){extension}"


def claim_unique_path(directory: Path, name: str, is_dir: bool) -> Path:
    """Create and return the first free ``name`` variant inside ``directory``.

    The claim is the creation itself (``mkdir`` or exclusive open), so two
    concurrent callers can never end up with the same path. Folder names
    are numbered without splitting an extension.
    """
    for candidate in candidate_names(name, keep_extension=not is_dir):
        target = directory / candidate
        try:
            if is_dir:
                target.mkdir()
            else:
                with open(target, "xb"):
                    pass
            return target
        except FileExistsError:
            continue
    raise AssertionError("unreachable")
