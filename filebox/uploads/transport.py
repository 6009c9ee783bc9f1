"""
HTTP upload transport feeding an ``UploadCoordinator``.
"""

import asyncio
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence
from urllib.parse import quote

import aiofiles
import httpx
from aiofiles import os as aioos

from ..logger import log_exception, logger
from .coordinator import UploadCoordinator
from .types import FileDescriptor, UploadRecord, UploadStatus

UPLOAD_PATH_HEADER = "X-Upload-Path"
FILE_NAME_HEADER = "X-File-Name"
CANCELLED_MESSAGE = "Upload cancelled"

BatchSettledCallback = Callable[[], Optional[Awaitable[None]]]


class UploadClient:
    """
    Streams local files to ``POST /api/upload`` and reports their lifecycle.

    Each file is its own asyncio task. Its cancellation handle is registered
    with the coordinator before the first byte is sent, so cancelling one
    upload aborts that request only. ``on_batch_settled`` runs once per
    batch after every transfer has finished, whatever the outcome.
    """

    def __init__(
        self,
        coordinator: UploadCoordinator,
        base_url: str = "",
        client: Optional[httpx.AsyncClient] = None,
        chunk_size: int = 1024 * 1024,
        on_batch_settled: Optional[BatchSettledCallback] = None,
    ):
        self.coordinator = coordinator
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=None)
        self._chunk_size = chunk_size
        self._on_batch_settled = on_batch_settled

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _read_chunks(
        self, upload_id: str, local_path: Path, total_size: int
    ) -> AsyncIterator[bytes]:
        sent = 0
        async with aiofiles.open(local_path, "rb") as f:
            while chunk := await f.read(self._chunk_size):
                sent += len(chunk)
                if total_size:
                    self.coordinator.report_progress(upload_id, sent * 100 // total_size)
                yield chunk

    def _finish(
        self, record: UploadRecord, status: UploadStatus, error: Optional[str] = None
    ) -> UploadRecord:
        """Report a terminal status and snapshot the record while it is still live."""
        self.coordinator.report_terminal(record.id, status, error)
        snapshot = self.coordinator.get_upload(record.id)
        if snapshot is None:
            # Purged by a newer batch before this transfer settled
            progress = 100 if status == UploadStatus.DONE else record.progress
            snapshot = record.model_copy(
                update={"status": status, "error": error, "progress": progress}
            )
        return snapshot

    async def _send(
        self, record: UploadRecord, target_dir: str, local_path: Path, total_size: int
    ) -> UploadRecord:
        headers = {
            UPLOAD_PATH_HEADER: quote(target_dir),
            FILE_NAME_HEADER: quote(record.name),
            "Content-Type": "application/octet-stream",
            "Content-Length": str(total_size),
        }
        try:
            response = await self._client.post(
                "/api/upload",
                content=self._read_chunks(record.id, local_path, total_size),
                headers=headers,
            )
        except asyncio.CancelledError:
            self.coordinator.report_terminal(record.id, UploadStatus.ERROR, CANCELLED_MESSAGE)
            raise
        except (httpx.HTTPError, OSError) as e:
            return self._finish(record, UploadStatus.ERROR, str(e) or type(e).__name__)

        if response.status_code == 201:
            return self._finish(record, UploadStatus.DONE)
        return self._finish(record, UploadStatus.ERROR, _error_message(response))

    @log_exception("Post-upload refresh")
    async def _settled(self) -> None:
        if self._on_batch_settled is None:
            return
        result = self._on_batch_settled()
        if asyncio.iscoroutine(result):
            await result

    async def upload_files(
        self, target_dir: str, local_paths: Sequence[Path | str]
    ) -> List[UploadRecord]:
        """Upload ``local_paths`` into the sandbox folder ``target_dir``."""
        paths = [Path(p) for p in local_paths]
        sizes = [(await aioos.stat(p)).st_size for p in paths]
        records = self.coordinator.begin_batch(
            FileDescriptor(name=p.name, size=size) for p, size in zip(paths, sizes)
        )

        tasks = []
        for record, path, size in zip(records, paths, sizes):
            task = asyncio.create_task(self._send(record, target_dir, path, size))
            self.coordinator.register_cancellation_handle(record.id, task.cancel)
            tasks.append(task)

        results = await asyncio.gather(*tasks, return_exceptions=True)

        snapshots = []
        for record, task, result in zip(records, tasks, results):
            if isinstance(result, UploadRecord):
                snapshots.append(result)
            elif task.cancelled():
                # Also covers a cancel that landed before the task first ran
                snapshots.append(
                    self._finish(record, UploadStatus.ERROR, CANCELLED_MESSAGE)
                )
            else:
                snapshots.append(
                    self._finish(
                        record, UploadStatus.ERROR, str(result) or type(result).__name__
                    )
                )

        logger.info(f"Upload batch to {target_dir} settled ({len(tasks)} file(s))")
        await self._settled()
        return snapshots


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["message"]
    except (ValueError, KeyError, TypeError):
        return f"Upload failed with status {response.status_code}"
