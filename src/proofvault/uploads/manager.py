"""Sequential upload queue orchestration."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from proofvault.validation.models import FileCandidate

from . import machine
from .errors import TransferError
from .models import (
    BatchDrained,
    BatchEnqueued,
    EntryStatus,
    FolderCreated,
    FolderCreationFailed,
    FolderCreationStarted,
    FolderState,
    QueueCleared,
    QueueEntry,
    QueueEvent,
    RetryRequested,
    TransferFailed,
    TransferProgressed,
    TransferStarted,
    TransferSucceeded,
    UploadQueue,
)
from .transfer import TransferClient

LOGGER = logging.getLogger(__name__)

BatchListener = Callable[[BatchDrained], None]


class UploadQueueManager:
    """Own the upload queue and drive transfers strictly one at a time.

    The manager never polls. Each method call or transfer callback becomes one
    event applied through :mod:`proofvault.uploads.machine`. Listeners receive a
    :class:`BatchDrained` notification when a batch finishes with at least one
    completed entry.
    """

    def __init__(self, queue: UploadQueue | None = None) -> None:
        self._queue = queue if queue is not None else UploadQueue()
        self._listeners: List[BatchListener] = []

    @property
    def queue(self) -> UploadQueue:
        return self._queue

    @property
    def entries(self) -> tuple[QueueEntry, ...]:
        return self._queue.entries

    @property
    def current_index(self) -> int:
        return self._queue.current_index

    @property
    def is_uploading(self) -> bool:
        return self._queue.uploading is not None

    @property
    def folder_status(self) -> str:
        return self._queue.folder_status

    @property
    def precondition_error(self) -> Optional[str]:
        return self._queue.precondition_error

    def subscribe(self, listener: BatchListener) -> Callable[[], None]:
        """Register a batch listener and return a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, event: QueueEvent) -> UploadQueue:
        """Apply one event and notify listeners if it drained a batch."""
        self._queue = machine.apply(self._queue, event)
        LOGGER.debug("Applied %s; cursor at %d.", type(event).__name__, self._queue.current_index)

        if isinstance(event, (TransferSucceeded, TransferFailed)):
            entry = self._queue.entry(event.entry_id)
            if entry is not None:
                drained = machine.drained_batch(self._queue, entry.batch_id)
                if drained is not None and drained.completed > 0:
                    self._notify(drained)
        return self._queue

    def enqueue(
        self,
        files: Iterable[FileCandidate],
        category_id: str,
        artifact_id: Optional[str],
        description: str,
        *,
        folder_exists: bool = False,
        artifact_ids: Optional[Iterable[Optional[str]]] = None,
    ) -> List[QueueEntry]:
        """Append already-validated files as one batch and return the new entries.

        ``artifact_ids``, when given, tags each file with its own artifact in
        place of ``artifact_id``.
        """
        batch = tuple(files)
        if not batch:
            return []
        batch_id = self._queue.next_batch_id
        self.dispatch(
            BatchEnqueued(
                files=batch,
                category_id=category_id,
                artifact_id=artifact_id,
                description=description,
                folder_exists=folder_exists,
                artifact_ids=tuple(artifact_ids or ()),
            )
        )
        LOGGER.info("Queued %d file(s) for %s as batch %d.", len(batch), category_id, batch_id)
        return self._queue.batch(batch_id)

    def retry_failed(self) -> int:
        """Send every failed entry back to pending and return how many were retried.

        A failed folder creation is reset as well, which unblocks the queue so
        the next :meth:`process` call creates the folder again.
        """
        failed = len(self.failed_entries())
        if failed or self._queue.precondition_error:
            self.dispatch(RetryRequested())
            LOGGER.info("Retrying %d failed upload(s).", failed)
        return failed

    def clear_queue(self) -> None:
        """Remove every entry regardless of status."""
        self.dispatch(QueueCleared())

    def pending_entries(self) -> List[QueueEntry]:
        return self._queue.with_status(EntryStatus.PENDING)

    def failed_entries(self) -> List[QueueEntry]:
        return self._queue.with_status(EntryStatus.FAILED)

    def completed_entries(self) -> List[QueueEntry]:
        return self._queue.with_status(EntryStatus.COMPLETED)

    def status_line(self) -> str:
        """Return a one-line description of queue progress."""
        queue = self._queue
        if queue.precondition_error:
            return queue.precondition_error
        active = queue.uploading
        total = len(queue.entries)
        if active is not None:
            return f"Uploading {queue.current_index + 1} of {total}: {active.file.name}"
        action = machine.next_action(queue)
        if isinstance(action, machine.AwaitFolder):
            return queue.folder_status
        completed = len(self.completed_entries())
        failed = len(self.failed_entries())
        pending = len(self.pending_entries())
        return f"{completed} completed, {failed} failed, {pending} pending of {total}"

    def process(self, transfer: TransferClient, *, create_missing_folders: bool = True) -> UploadQueue:
        """Run pending work against ``transfer`` until the queue is idle or blocked.

        Folders are created before the first transfer into their category.
        Transfer failures are recorded on their entry and processing moves on;
        a folder failure blocks the queue until it is retried or cleared. A
        folder left creating by an earlier dispatch is created here.

        Args:
            transfer: Collaborator that creates folders and moves files.
            create_missing_folders: Whether missing folders may be created.

        Returns:
            UploadQueue: Queue snapshot after processing stops.
        """
        while True:
            action = machine.next_action(self._queue)
            if isinstance(action, (machine.CreateFolder, machine.AwaitFolder)):
                if not self._prepare_folder(transfer, action.category_id, create_missing_folders):
                    break
            elif isinstance(action, machine.StartTransfer):
                self._transfer(transfer, action.entry)
            else:
                if isinstance(action, machine.Blocked):
                    LOGGER.warning("Upload queue blocked: %s", action.reason)
                break
        return self._queue

    def _prepare_folder(self, transfer: TransferClient, category_id: str, create: bool) -> bool:
        if transfer.folder_exists(category_id):
            self.dispatch(FolderCreated(category_id))
            return True
        if not create:
            self.dispatch(FolderCreationFailed(category_id, "destination folder does not exist"))
            return False
        if self._queue.folder_state(category_id) is not FolderState.CREATING:
            self.dispatch(FolderCreationStarted(category_id))
        try:
            folder_id = transfer.create_folder(category_id)
        except TransferError as exc:
            LOGGER.warning("Folder creation for %s failed: %s", category_id, exc)
            self.dispatch(FolderCreationFailed(category_id, str(exc)))
            return False
        self.dispatch(FolderCreated(category_id, folder_id))
        return True

    def _transfer(self, transfer: TransferClient, entry: QueueEntry) -> None:
        self.dispatch(TransferStarted(entry.id))

        def _report(progress: int) -> None:
            self.dispatch(TransferProgressed(entry.id, progress))

        try:
            transfer.upload(entry, _report)
        except TransferError as exc:
            LOGGER.warning("Upload of %s failed: %s", entry.file.name, exc)
            self.dispatch(TransferFailed(entry.id, str(exc)))
        else:
            self.dispatch(TransferSucceeded(entry.id))

    def _notify(self, drained: BatchDrained) -> None:
        LOGGER.info(
            "Batch %d drained: %d completed, %d failed.",
            drained.batch_id,
            drained.completed,
            drained.failed,
        )
        for listener in list(self._listeners):
            listener(drained)


__all__ = ["BatchListener", "UploadQueueManager"]
