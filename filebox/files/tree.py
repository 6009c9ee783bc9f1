"""
Folder hierarchy for the navigation tree.
"""

from typing import Dict

from ..config import settings
from .paths import PathResolver
from .reader import require_directory, walk_folders
from .types import TreeNode


async def build_tree(
    resolver: PathResolver, path: str = "/", name: str | None = None
) -> TreeNode:
    """Build the folder-only tree beneath ``path``.

    Children keep the listing order. The top node takes ``name`` (defaults
    to the configured tree root name); for the sandbox root its path is "/".
    """
    directory = await require_directory(resolver, path)
    root = TreeNode(
        name=name if name is not None else settings.tree_root_name,
        path=resolver.to_entry_path(directory),
    )

    nodes: Dict[str, TreeNode] = {root.path: root}
    async for folder_path, entries in walk_folders(resolver, directory):
        parent = nodes[folder_path]
        for entry in entries:
            if entry.is_folder:
                child = TreeNode(name=entry.name, path=entry.path)
                parent.children.append(child)
                nodes[child.path] = child

    return root
