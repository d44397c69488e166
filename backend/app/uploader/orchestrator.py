"""
Upload orchestrator.

Drives a batch of local files into a gallery:

    queued -> signing -> transferring -> recording -> done
                 |             |              |
                 +-------------+--------------+----> failed

For each file it classifies the type, asks the signing service for a PUT
URL, transfers the bytes straight to the object store, records the media
row and bumps the gallery counter. A failing file never stops the batch:
every input file ends up in exactly one list of the BatchResult.

Files are processed by a fixed pool of workers pulling from one queue.
With max_concurrency=1 (the default) files go strictly in order.
"""
import asyncio
import logging
import time
import uuid
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Union

from app.metadata.recorder import MetadataRecorder
from app.storage.errors import (
    TransferError,
    UnsupportedTypeError,
    UploadPipelineError,
    UpstreamError,
    ValidationError,
)
from app.uploader.keys import build_object_key, validate_gallery_id
from app.uploader.models import (
    BatchResult,
    FailedUpload,
    FileLike,
    MediaRecordRef,
    TaskState,
    UploadTask,
    as_local_files,
    classify,
)
from app.uploader.progress import (
    CallbackProgressSink,
    ProgressEvent,
    ProgressSink,
    ProgressStatus,
    safe_emit,
)
from app.uploader.signing_client import ObjectStoreClient, SigningClient
from app.utils.logging import (
    log_batch_completed,
    log_batch_started,
    log_orphan_candidate,
    log_orphan_record,
    log_task_failed,
)
from app.utils.metrics import upload_batches_total

logger = logging.getLogger(__name__)

ProgressLike = Union[ProgressSink, Callable[..., None], None]

Outcome = Union[MediaRecordRef, FailedUpload]


class UploadOrchestrator:
    """
    Uploads batches of files to a gallery.

    Responsibilities:
    - Classify files (image/* -> photo, video/* -> video)
    - Build unique object keys
    - Sign, transfer and record each file
    - Compensate when recording fails after a transfer
    - Report progress and a batch summary
    """

    def __init__(
        self,
        signing_client: SigningClient,
        object_store: ObjectStoreClient,
        recorder: MetadataRecorder,
        max_concurrency: int = 1,
    ):
        if max_concurrency < 1:
            raise ValidationError("max_concurrency must be at least 1")
        self._signing = signing_client
        self._store = object_store
        self._recorder = recorder
        self._max_concurrency = max_concurrency

    async def upload_files(
        self,
        files: Iterable[FileLike],
        gallery_id: str,
        progress: ProgressLike = None,
        sort_offset: int = 0,
    ) -> BatchResult:
        """
        Upload files to a gallery.

        Args:
            files: Local files (LocalFile, Path or str)
            gallery_id: Target gallery
            progress: ProgressSink, or a callback (filename, index, total, status, error=None)
            sort_offset: sort_order of the first file

        Returns:
            BatchResult covering every input file

        Raises:
            ValidationError: if gallery_id is malformed (nothing is uploaded)
        """
        validate_gallery_id(gallery_id)
        sink = progress if isinstance(progress, ProgressSink) or progress is None else CallbackProgressSink(progress)

        tasks = [
            UploadTask(local_file=f, gallery_id=gallery_id, sequence_index=i)
            for i, f in enumerate(as_local_files(list(files)))
        ]
        total = len(tasks)
        batch_id = uuid.uuid4().hex
        workers = min(self._max_concurrency, total)
        start = time.monotonic()
        log_batch_started(logger, batch_id=batch_id, gallery_id=gallery_id, total=total, concurrency=workers)

        queue: asyncio.Queue = asyncio.Queue()
        for task in tasks:
            queue.put_nowait(task)
        outcomes: List[Optional[Outcome]] = [None] * total

        async def worker():
            while True:
                try:
                    task = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                outcomes[task.sequence_index] = await self._run_task(
                    task, total, sink, batch_id, sort_offset
                )
                queue.task_done()

        await asyncio.gather(*(worker() for _ in range(workers)))

        result = BatchResult(
            succeeded=tuple(o for o in outcomes if isinstance(o, MediaRecordRef)),
            failed=tuple(o for o in outcomes if isinstance(o, FailedUpload)),
            total=total,
        )
        upload_batches_total.inc()
        log_batch_completed(
            logger,
            batch_id=batch_id,
            gallery_id=gallery_id,
            total=total,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
            duration_ms=(time.monotonic() - start) * 1000,
        )
        return result

    async def _run_task(
        self,
        task: UploadTask,
        total: int,
        sink: Optional[ProgressSink],
        batch_id: str,
        sort_offset: int,
    ) -> Outcome:
        """Run one file to a terminal state. Never raises."""
        index = task.sequence_index + 1

        def report(status: ProgressStatus, error: Optional[str] = None):
            safe_emit(sink, ProgressEvent(task.filename, index, total, status, error))

        try:
            ref = await self._upload(task, report, batch_id, sort_offset)
        except UploadPipelineError as e:
            return self._fail(task, e.kind, str(e), report, batch_id)
        except Exception as e:
            # Anything unexpected still only fails this file
            return self._fail(task, UpstreamError.kind, str(e) or type(e).__name__, report, batch_id, traceback=True)

        task.state = TaskState.DONE
        report(ProgressStatus.COMPLETED)
        return ref

    async def _upload(self, task: UploadTask, report, batch_id: str, sort_offset: int) -> MediaRecordRef:
        local_file = task.local_file
        content_type = local_file.declared_type
        media_type = classify(content_type)
        if media_type is None:
            raise UnsupportedTypeError(f"Unsupported file type: {content_type or 'unknown'}")

        task.state = TaskState.SIGNING
        report(ProgressStatus.UPLOADING)
        key = build_object_key(task.gallery_id, task.filename)
        grant = await self._signing.request_upload_url(key, content_type)

        task.state = TaskState.TRANSFERRING
        try:
            body = await asyncio.to_thread(local_file.read_bytes)
        except OSError as e:
            raise TransferError(f"Cannot read {local_file.path}: {e}") from e
        await self._store.put(grant.upload_url, body, content_type)

        task.state = TaskState.RECORDING
        ref = MediaRecordRef(
            media_id=str(uuid.uuid4()),
            gallery_id=task.gallery_id,
            type=media_type,
            storage_url=grant.public_url,
            object_key=key,
            filename=task.filename,
            size_bytes=len(body),
            sort_order=sort_offset + task.sequence_index,
            content_type=content_type,
        )
        return await self._record(ref, batch_id)

    async def _record(self, ref: MediaRecordRef, batch_id: str) -> MediaRecordRef:
        """
        Write the media row and bump the counter.

        On failure the row (if written) and the object are removed again so
        the store and the metadata never disagree past this task.
        """
        try:
            media_id = await self._recorder.create_media_record(ref)
        except Exception as e:
            await self._discard_object(ref, batch_id, reason="media_record_failed")
            raise UpstreamError(f"Failed to record media: {e}") from e

        ref = replace(ref, media_id=media_id)
        try:
            await self._recorder.increment_counter(ref.gallery_id, ref.counter_field)
        except Exception as e:
            # The object may only go once no record points at it
            if await self._discard_record(ref, batch_id):
                await self._discard_object(ref, batch_id, reason="counter_update_failed")
            raise UpstreamError(f"Failed to update gallery counter: {e}") from e

        return ref

    async def _discard_record(self, ref: MediaRecordRef, batch_id: str) -> bool:
        """Remove a just-written record. Returns False if it is still there."""
        try:
            await self._recorder.delete_media_record(ref.media_id)
        except Exception as e:
            log_orphan_record(
                logger,
                media_id=ref.media_id,
                object_key=ref.object_key,
                gallery_id=ref.gallery_id,
                batch_id=batch_id,
                reason=f"counter_update_failed; record delete failed: {e}",
            )
            return False
        return True

    async def _discard_object(self, ref: MediaRecordRef, batch_id: str, reason: str) -> None:
        """Best-effort delete of an uploaded object that has no metadata."""
        try:
            await self._signing.delete_object(ref.object_key)
        except Exception as e:
            log_orphan_candidate(
                logger,
                object_key=ref.object_key,
                gallery_id=ref.gallery_id,
                batch_id=batch_id,
                reason=f"{reason}; delete failed: {e}",
            )
            return
        logger.info(f"Removed {ref.object_key} after {reason}")

    def _fail(
        self,
        task: UploadTask,
        kind: str,
        detail: str,
        report,
        batch_id: str,
        traceback: bool = False,
    ) -> FailedUpload:
        task.state = TaskState.FAILED
        log_task_failed(
            logger,
            batch_id=batch_id,
            gallery_id=task.gallery_id,
            filename=task.filename,
            error_kind=kind,
            error=detail,
            include_traceback=traceback,
        )
        report(ProgressStatus.FAILED, detail)
        return FailedUpload(filename=task.filename, error_kind=kind, detail=detail)
