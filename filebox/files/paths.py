"""Sandbox path resolution.

Client paths are posix-style and sandbox-relative (``/docs/a.txt``). Every
filesystem touch goes through :class:`PathResolver`, which maps them onto
the sandbox root and refuses anything that would land outside of it.
"""

import os
import posixpath
from pathlib import Path

from ..exceptions import AccessDeniedError, InvalidInputError

ROOT_ENTRY_PATH = "/"


def normalize_entry_path(user_path: str) -> str:
    """Collapse a client path to its canonical ``/a/b`` form.

    Only used to compare and join client paths; it is not a safety check.
    """
    cleaned = (user_path or "").replace("\\", "/").strip()
    normalized = posixpath.normpath("/" + cleaned.lstrip("/"))
    # normpath keeps a leading "//"
    return "/" + normalized.lstrip("/")


def join_entry_path(parent: str, name: str) -> str:
    return posixpath.join(normalize_entry_path(parent), name)


def parent_entry_path(entry_path: str) -> str:
    normalized = normalize_entry_path(entry_path)
    if normalized == ROOT_ENTRY_PATH:
        return ROOT_ENTRY_PATH
    return normalized[: normalized.rfind("/")] or ROOT_ENTRY_PATH


def is_descendant(path: str, ancestor: str) -> bool:
    """True if ``path`` lies strictly beneath ``ancestor``."""
    if ancestor == ROOT_ENTRY_PATH:
        return path != ROOT_ENTRY_PATH
    return path.startswith(ancestor + "/")


def validate_entry_name(name: str) -> str:
    """Reject names that are empty or would address another directory."""
    if name is None or not name.strip():
        raise InvalidInputError("Name must not be empty")
    if "/" in name or "\\" in name or "\0" in name or name in (".", ".."):
        raise InvalidInputError(f"Invalid name: '{name}'")
    return name


class PathResolver:
    """Maps sandbox-relative paths to absolute paths under ``root``."""

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()

    def resolve(self, user_path: str) -> Path:
        """Return the absolute path for ``user_path``.

        Raises:
            AccessDeniedError: if the path escapes the sandbox root, either
                lexically (``..``) or through a symlink.
        """
        if "\0" in (user_path or ""):
            raise InvalidInputError("Path contains a NUL byte")

        relative = (user_path or "").replace("\\", "/").lstrip("/")
        candidate = Path(os.path.normpath(self.root / relative))
        if not self._contains(candidate) or not self._contains(candidate.resolve()):
            raise AccessDeniedError(
                "Access denied: Path is outside of the allowed directory."
            )
        return candidate

    def to_entry_path(self, absolute_path: Path) -> str:
        """Inverse of :meth:`resolve` for paths already inside the sandbox."""
        relative = Path(absolute_path).relative_to(self.root)
        if str(relative) == ".":
            return ROOT_ENTRY_PATH
        return "/" + relative.as_posix()

    def _contains(self, path: Path) -> bool:
        return path == self.root or self.root in path.parents
