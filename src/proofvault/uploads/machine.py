"""Pure transitions for the upload queue.

Every transition takes a queue snapshot and an event and returns a new
snapshot; nothing here performs I/O or keeps state. The manager drives these
functions in response to user actions and transfer callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .errors import InvalidTransitionError
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


def apply(queue: UploadQueue, event: QueueEvent) -> UploadQueue:
    """Return the queue that results from applying ``event`` to ``queue``.

    Raises:
        InvalidTransitionError: If the event is not legal in the current state.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise InvalidTransitionError(f"Unsupported queue event: {event!r}")
    return handler(event, queue)


def apply_all(queue: UploadQueue, events: Iterable[QueueEvent]) -> UploadQueue:
    for event in events:
        queue = apply(queue, event)
    return queue


def cursor(entries: Tuple[QueueEntry, ...]) -> int:
    """Return the index of the first non-terminal entry, or ``len(entries)``."""
    for index, entry in enumerate(entries):
        if not entry.status.terminal:
            return index
    return len(entries)


# Next action -------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Idle:
    """Nothing left to do."""


@dataclass(frozen=True, slots=True)
class Blocked:
    reason: str


@dataclass(frozen=True, slots=True)
class CreateFolder:
    category_id: str


@dataclass(frozen=True, slots=True)
class AwaitFolder:
    category_id: str


@dataclass(frozen=True, slots=True)
class StartTransfer:
    entry: QueueEntry


@dataclass(frozen=True, slots=True)
class AwaitTransfer:
    entry: QueueEntry


NextAction = Idle | Blocked | CreateFolder | AwaitFolder | StartTransfer | AwaitTransfer


def next_action(queue: UploadQueue) -> NextAction:
    """Return what the driver has to do next for ``queue``."""
    if queue.precondition_error:
        return Blocked(queue.precondition_error)
    active = queue.uploading
    if active is not None:
        return AwaitTransfer(active)
    if queue.current_index >= len(queue.entries):
        return Idle()
    entry = queue.entries[queue.current_index]
    state = queue.folder_state(entry.category_id)
    if state is FolderState.READY:
        return StartTransfer(entry)
    if state is FolderState.CREATING:
        return AwaitFolder(entry.category_id)
    return CreateFolder(entry.category_id)


def drained_batch(queue: UploadQueue, batch_id: int) -> Optional[BatchDrained]:
    """Summarize ``batch_id`` once all of its entries are terminal."""
    entries = queue.batch(batch_id)
    if not entries or any(not entry.status.terminal for entry in entries):
        return None
    completed = sum(1 for entry in entries if entry.status is EntryStatus.COMPLETED)
    return BatchDrained(
        batch_id=batch_id,
        completed=completed,
        failed=len(entries) - completed,
        retry=batch_id in queue.retry_batches,
    )


# Transitions -------------------------------------------------------------


def _replace_entry(queue: UploadQueue, updated: QueueEntry, **changes) -> UploadQueue:
    entries = tuple(updated if entry.id == updated.id else entry for entry in queue.entries)
    return queue.model_copy(update={"entries": entries, "current_index": cursor(entries), **changes})


def _require_entry(queue: UploadQueue, entry_id: int, expected: EntryStatus) -> QueueEntry:
    entry = queue.entry(entry_id)
    if entry is None:
        raise InvalidTransitionError(f"Entry {entry_id} is not in the queue")
    if entry.status is not expected:
        raise InvalidTransitionError(
            f"Entry {entry_id} is {entry.status.value}, expected {expected.value}"
        )
    return entry


def _enqueue_batch(event: BatchEnqueued, queue: UploadQueue) -> UploadQueue:
    if not event.files:
        raise InvalidTransitionError("Cannot enqueue an empty batch")
    if event.artifact_ids and len(event.artifact_ids) != len(event.files):
        raise InvalidTransitionError("artifact_ids must name one artifact per file")
    artifact_ids = event.artifact_ids or (event.artifact_id,) * len(event.files)
    batch_id = queue.next_batch_id
    new_entries = tuple(
        QueueEntry(
            id=queue.next_entry_id + offset,
            batch_id=batch_id,
            file=file,
            category_id=event.category_id,
            artifact_id=artifact_id,
            description=event.description,
        )
        for offset, (file, artifact_id) in enumerate(zip(event.files, artifact_ids))
    )
    entries = queue.entries + new_entries
    folders: Dict[str, FolderState] = dict(queue.folders)
    if event.folder_exists:
        folders[event.category_id] = FolderState.READY
    return queue.model_copy(
        update={
            "entries": entries,
            "current_index": cursor(entries),
            "folders": folders,
            "next_entry_id": queue.next_entry_id + len(new_entries),
            "next_batch_id": batch_id + 1,
        }
    )


def _start_folder(event: FolderCreationStarted, queue: UploadQueue) -> UploadQueue:
    state = queue.folder_state(event.category_id)
    if state not in (FolderState.MISSING, FolderState.FAILED):
        raise InvalidTransitionError(f"Folder for {event.category_id} is already {state.value}")
    folders = {**queue.folders, event.category_id: FolderState.CREATING}
    return queue.model_copy(
        update={
            "folders": folders,
            "folder_status": f"Creating folder for {event.category_id}...",
            "precondition_error": None,
        }
    )


def _folder_ready(event: FolderCreated, queue: UploadQueue) -> UploadQueue:
    folders = {**queue.folders, event.category_id: FolderState.READY}
    return queue.model_copy(
        update={
            "folders": folders,
            "folder_status": f"Folder ready for {event.category_id}",
            "precondition_error": None,
        }
    )


def _folder_failed(event: FolderCreationFailed, queue: UploadQueue) -> UploadQueue:
    folders = {**queue.folders, event.category_id: FolderState.FAILED}
    message = f"Folder creation failed for {event.category_id}: {event.error}"
    return queue.model_copy(
        update={"folders": folders, "folder_status": message, "precondition_error": message}
    )


def _start_transfer(event: TransferStarted, queue: UploadQueue) -> UploadQueue:
    if queue.precondition_error:
        raise InvalidTransitionError(f"Queue is blocked: {queue.precondition_error}")
    active = queue.uploading
    if active is not None:
        raise InvalidTransitionError(f"Entry {active.id} is still uploading")
    entry = _require_entry(queue, event.entry_id, EntryStatus.PENDING)
    if queue.entries.index(entry) != queue.current_index:
        raise InvalidTransitionError(f"Entry {entry.id} is not next in line")
    if queue.folder_state(entry.category_id) is not FolderState.READY:
        raise InvalidTransitionError(f"Folder for {entry.category_id} is not ready")
    updated = entry.model_copy(update={"status": EntryStatus.UPLOADING, "progress": 0, "error": None})
    return _replace_entry(queue, updated)


def _record_progress(event: TransferProgressed, queue: UploadQueue) -> UploadQueue:
    entry = _require_entry(queue, event.entry_id, EntryStatus.UPLOADING)
    progress = max(0, min(100, int(event.progress)))
    return _replace_entry(queue, entry.model_copy(update={"progress": progress}))


def _complete_transfer(event: TransferSucceeded, queue: UploadQueue) -> UploadQueue:
    entry = _require_entry(queue, event.entry_id, EntryStatus.UPLOADING)
    updated = entry.model_copy(
        update={"status": EntryStatus.COMPLETED, "progress": 100, "error": None}
    )
    return _replace_entry(queue, updated)


def _fail_transfer(event: TransferFailed, queue: UploadQueue) -> UploadQueue:
    entry = _require_entry(queue, event.entry_id, EntryStatus.UPLOADING)
    updated = entry.model_copy(
        update={"status": EntryStatus.FAILED, "error": event.error or "Upload failed"}
    )
    return _replace_entry(queue, updated)


def _retry_failed(event: RetryRequested, queue: UploadQueue) -> UploadQueue:
    if queue.uploading is not None:
        raise InvalidTransitionError("Cannot retry while a transfer is in progress")
    failed_folders = [
        category_id for category_id, state in queue.folders.items() if state is FolderState.FAILED
    ]
    has_failed_entries = bool(queue.with_status(EntryStatus.FAILED))
    blocked = bool(failed_folders or queue.precondition_error)
    if not has_failed_entries and not blocked:
        return queue
    if blocked:
        # Failed folders go back to missing so the driver attempts creation again.
        folders = {**queue.folders, **{category_id: FolderState.MISSING for category_id in failed_folders}}
        queue = queue.model_copy(
            update={"folders": folders, "folder_status": "", "precondition_error": None}
        )
    if not has_failed_entries:
        return queue
    batch_id = queue.next_batch_id
    entries = tuple(
        entry.model_copy(
            update={"status": EntryStatus.PENDING, "progress": 0, "error": None, "batch_id": batch_id}
        )
        if entry.status is EntryStatus.FAILED
        else entry
        for entry in queue.entries
    )
    return queue.model_copy(
        update={
            "entries": entries,
            "current_index": cursor(entries),
            "next_batch_id": batch_id + 1,
            "retry_batches": queue.retry_batches | {batch_id},
        }
    )


def _clear(event: QueueCleared, queue: UploadQueue) -> UploadQueue:
    # Ready folders exist remotely and stay ready; failed ones may be retried.
    folders = {
        category_id: state
        for category_id, state in queue.folders.items()
        if state is FolderState.READY
    }
    return queue.model_copy(
        update={
            "entries": (),
            "current_index": 0,
            "folders": folders,
            "folder_status": "",
            "precondition_error": None,
            "retry_batches": frozenset(),
        }
    )


_HANDLERS: Dict[type, Callable[[Any, UploadQueue], UploadQueue]] = {
    BatchEnqueued: _enqueue_batch,
    FolderCreationStarted: _start_folder,
    FolderCreated: _folder_ready,
    FolderCreationFailed: _folder_failed,
    TransferStarted: _start_transfer,
    TransferProgressed: _record_progress,
    TransferSucceeded: _complete_transfer,
    TransferFailed: _fail_transfer,
    RetryRequested: _retry_failed,
    QueueCleared: _clear,
}


__all__ = [
    "AwaitFolder",
    "AwaitTransfer",
    "Blocked",
    "CreateFolder",
    "Idle",
    "NextAction",
    "StartTransfer",
    "apply",
    "apply_all",
    "cursor",
    "drained_batch",
    "next_action",
]
