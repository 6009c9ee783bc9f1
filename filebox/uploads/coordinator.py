import time
from typing import Callable, Dict, Iterable, List, Optional

from ..logger import logger
from .types import FileDescriptor, UploadRecord, UploadStatus

CancellationHandle = Callable[[], None]

_RECORD_EXPIRY = 5.0  # seconds a finished record stays visible


class UploadCoordinator:
    """
    Tracks the lifecycle of concurrent uploads.

    Records start as UPLOADING, take progress reports, and move exactly once
    to DONE or ERROR. A finished record stays visible for ``expiry_delay``
    seconds and is then dropped the next time records are read. The
    transport only reports into the coordinator; callers get copies, never
    the live records.
    """

    def __init__(
        self,
        expiry_delay: float = _RECORD_EXPIRY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._expiry_delay = expiry_delay
        self._clock = clock
        self._records: Dict[str, UploadRecord] = {}
        self._cancel_handles: Dict[str, CancellationHandle] = {}

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            upload_id
            for upload_id, record in self._records.items()
            if record.expires_at is not None and record.expires_at <= now
        ]
        for upload_id in expired:
            del self._records[upload_id]

    def begin_batch(
        self, files: Iterable[FileDescriptor | str]
    ) -> List[UploadRecord]:
        """Start tracking a batch; lingering finished records are cleared first."""
        for upload_id in [
            upload_id for upload_id, record in self._records.items() if record.is_terminal
        ]:
            del self._records[upload_id]

        created = []
        for file in files:
            name = file if isinstance(file, str) else file.name
            record = UploadRecord(name=name)
            while record.id in self._records:
                record = UploadRecord(name=name)
            self._records[record.id] = record
            created.append(record.model_copy())

        logger.debug(f"Upload batch started with {len(created)} file(s)")
        return created

    def report_progress(self, upload_id: str, percent: int) -> None:
        """Record progress; stale, unknown or out-of-range reports are ignored."""
        record = self._records.get(upload_id)
        if record is None or record.status != UploadStatus.UPLOADING:
            return
        if not 0 <= percent <= 100:
            return
        record.progress = max(record.progress, int(percent))

    def report_terminal(
        self, upload_id: str, status: UploadStatus, error: Optional[str] = None
    ) -> None:
        """Finish a transfer. Only the first terminal report counts."""
        if status == UploadStatus.UPLOADING:
            raise ValueError("Terminal status must be DONE or ERROR")

        record = self._records.get(upload_id)
        if record is None or record.status != UploadStatus.UPLOADING:
            return

        record.status = status
        if status == UploadStatus.DONE:
            record.progress = 100
            record.error = None
        else:
            record.error = error
        record.expires_at = self._clock() + self._expiry_delay
        self._cancel_handles.pop(upload_id, None)

        if status == UploadStatus.ERROR:
            logger.warning(f"Upload {upload_id} ({record.name}) failed: {error}")
        else:
            logger.info(f"Upload {upload_id} ({record.name}) completed")

    def register_cancellation_handle(
        self, upload_id: str, handle: CancellationHandle
    ) -> None:
        record = self._records.get(upload_id)
        if record is None or record.status != UploadStatus.UPLOADING:
            return
        self._cancel_handles[upload_id] = handle

    def cancel(self, upload_id: str) -> bool:
        """Invoke the transfer's cancellation handle once.

        Returns False when there is nothing to cancel: unknown id, already
        cancelled, or the transfer already finished.
        """
        handle = self._cancel_handles.pop(upload_id, None)
        if handle is None:
            return False
        logger.info(f"Cancel requested for upload {upload_id}")
        handle()
        return True

    def get_upload(self, upload_id: str) -> Optional[UploadRecord]:
        self._purge_expired()
        record = self._records.get(upload_id)
        return record.model_copy() if record else None

    def get_uploads(self) -> List[UploadRecord]:
        """All records still in the active set, in creation order."""
        self._purge_expired()
        return [record.model_copy() for record in self._records.values()]

    def get_active_uploads(self) -> List[UploadRecord]:
        """Records still transferring."""
        return [r for r in self.get_uploads() if r.status == UploadStatus.UPLOADING]
