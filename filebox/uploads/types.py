import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class UploadStatus(str, Enum):
    UPLOADING = "uploading"
    DONE = "done"
    ERROR = "error"


TERMINAL_STATUSES = (UploadStatus.DONE, UploadStatus.ERROR)


class FileDescriptor(BaseModel):
    """What the coordinator needs to know about a file before it is sent."""

    name: str
    size: Optional[int] = None


class UploadRecord(BaseModel):
    """Client-side state of one transfer."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    progress: int = 0
    status: UploadStatus = UploadStatus.UPLOADING
    error: Optional[str] = None

    # Monotonic deadline after which a finished record is dropped
    expires_at: Optional[float] = Field(default=None, exclude=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
