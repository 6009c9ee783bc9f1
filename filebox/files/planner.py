"""
Batch planning: top-level reduction of a selection and the batch lifecycle.
"""

from enum import Enum
from typing import Iterable, List

from .paths import is_descendant, normalize_entry_path


class BatchState(str, Enum):
    VALIDATING = "validating"
    RESOLVING_PATHS = "resolving_paths"
    EXECUTING = "executing"
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"


def reduce_to_top_level(paths: Iterable[str]) -> List[str]:
    """Drop every path that lies beneath another selected path.

    Recursive delete/copy/move of an ancestor already covers its
    descendants. Duplicates collapse to one entry; input order is kept.
    """
    unique: List[str] = []
    seen = set()
    for path in paths:
        normalized = normalize_entry_path(path)
        if normalized not in seen:
            seen.add(normalized)
            unique.append(normalized)

    return [
        path
        for path in unique
        if not any(is_descendant(path, other) for other in unique if other != path)
    ]
