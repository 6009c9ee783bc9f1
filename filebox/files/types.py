"""
Entry, tree and request models for file operations.
"""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose JSON keys are camelCase (``lastModified``, ``newName``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntryKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class Entry(CamelModel):
    name: str
    type: EntryKind
    size: int  # 0 for folders
    last_modified: datetime
    path: str  # Sandbox-relative, always starts with "/"

    @property
    def is_folder(self) -> bool:
        return self.type == EntryKind.FOLDER


class TreeNode(CamelModel):
    """A folder and its folder children; files never appear in the tree."""

    name: str
    path: str
    children: List["TreeNode"] = Field(default_factory=list)


# Request bodies
class CreateFolderRequest(CamelModel):
    path: str = "/"
    folder_name: str


class CreateTextFileRequest(CamelModel):
    path: str = "/"
    file_name: str
    content: str = ""


class UploadRequest(CamelModel):
    """JSON upload: ``content`` is the base64-encoded file body."""

    path: str = "/"
    file_name: str
    content: str


class PathsRequest(CamelModel):
    paths: List[str]


class TransferRequest(CamelModel):
    paths: List[str]
    destination_path: str


class RenameRequest(CamelModel):
    entry_path: str
    new_name: str


class DecompressRequest(CamelModel):
    path: str


class CategorizeRequest(CamelModel):
    paths: List[str]
    current_path: str = "/"


class FileContent(CamelModel):
    content: str


class UpdateFileContentRequest(CamelModel):
    path: str
    content: str
