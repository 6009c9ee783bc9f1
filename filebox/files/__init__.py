"""
Sandboxed file store.

This package provides:
- Path resolution confined to the sandbox root
- Listing, name search and the folder tree
- Top-level reduction of multi-path selections
- Create/upload/delete/copy/move/rename/categorize operations
"""

from .operations import (
    categorize_entries,
    copy_entries,
    create_folder,
    create_text_file,
    delete_entries,
    get_download_path,
    get_file_content,
    iter_bytes,
    move_entries,
    rename_entry,
    update_file_content,
    upload_file,
)
from .paths import PathResolver
from .planner import BatchState, reduce_to_top_level
from .reader import list_entries, list_files_recursive, read_entry, search_entries
from .tree import build_tree
from .types import (
    CategorizeRequest,
    CreateFolderRequest,
    CreateTextFileRequest,
    DecompressRequest,
    Entry,
    EntryKind,
    FileContent,
    PathsRequest,
    RenameRequest,
    TransferRequest,
    TreeNode,
    UpdateFileContentRequest,
    UploadRequest,
)

__all__ = [
    # Types
    "CategorizeRequest",
    "CreateFolderRequest",
    "CreateTextFileRequest",
    "DecompressRequest",
    "Entry",
    "EntryKind",
    "FileContent",
    "PathsRequest",
    "RenameRequest",
    "TransferRequest",
    "TreeNode",
    "UpdateFileContentRequest",
    "UploadRequest",
    # Paths and planning
    "BatchState",
    "PathResolver",
    "reduce_to_top_level",
    # Reading
    "build_tree",
    "list_entries",
    "list_files_recursive",
    "read_entry",
    "search_entries",
    # Operations
    "categorize_entries",
    "copy_entries",
    "create_folder",
    "create_text_file",
    "delete_entries",
    "get_download_path",
    "get_file_content",
    "iter_bytes",
    "move_entries",
    "rename_entry",
    "update_file_content",
    "upload_file",
]
