"""
Client-side upload lifecycle.

``UploadCoordinator`` owns the per-file records (progress, terminal status,
expiry); ``UploadClient`` streams files over HTTP and reports into it.
"""

from .coordinator import UploadCoordinator
from .transport import UploadClient
from .types import FileDescriptor, UploadRecord, UploadStatus

__all__ = [
    "FileDescriptor",
    "UploadClient",
    "UploadCoordinator",
    "UploadRecord",
    "UploadStatus",
]
