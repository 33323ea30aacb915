"""Upload queue state, events, and notifications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from proofvault.validation.models import FileCandidate


class EntryStatus(str, Enum):
    """Lifecycle of a single transfer job."""

    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (EntryStatus.COMPLETED, EntryStatus.FAILED)


class FolderState(str, Enum):
    """Readiness of a category's remote folder."""

    MISSING = "missing"
    CREATING = "creating"
    READY = "ready"
    FAILED = "failed"


class QueueEntry(BaseModel):
    """One file awaiting or undergoing transfer.

    Attributes:
        id: Queue-unique entry identifier.
        batch_id: Submission batch the entry belongs to.
        file: File being transferred.
        category_id: Destination category.
        artifact_id: Artifact the file satisfies.
        description: Description supplied with the submission.
        status: Current lifecycle status.
        progress: Transfer progress from 0 to 100.
        error: Captured transfer error for failed entries.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    batch_id: int
    file: FileCandidate
    category_id: str
    artifact_id: Optional[str] = None
    description: str = ""
    status: EntryStatus = EntryStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    error: Optional[str] = None


class UploadQueue(BaseModel):
    """Immutable snapshot of the ordered upload queue.

    Attributes:
        entries: Entries in insertion order.
        current_index: Index of the uploading entry, or of the next entry to start.
        folders: Folder readiness per category.
        folder_status: Status text of the folder-creation precondition.
        precondition_error: Folder-creation failure blocking the whole queue.
        next_entry_id: Identifier assigned to the next enqueued entry.
        next_batch_id: Identifier assigned to the next batch.
        retry_batches: Batch ids created by retries rather than submissions.
    """

    model_config = ConfigDict(frozen=True)

    entries: Tuple[QueueEntry, ...] = ()
    current_index: int = 0
    folders: Dict[str, FolderState] = Field(default_factory=dict)
    folder_status: str = ""
    precondition_error: Optional[str] = None
    next_entry_id: int = 1
    next_batch_id: int = 1
    retry_batches: FrozenSet[int] = frozenset()

    def entry(self, entry_id: int) -> Optional[QueueEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def with_status(self, status: EntryStatus) -> List[QueueEntry]:
        return [entry for entry in self.entries if entry.status is status]

    def batch(self, batch_id: int) -> List[QueueEntry]:
        return [entry for entry in self.entries if entry.batch_id == batch_id]

    @property
    def uploading(self) -> Optional[QueueEntry]:
        for entry in self.entries:
            if entry.status is EntryStatus.UPLOADING:
                return entry
        return None

    def folder_state(self, category_id: str) -> FolderState:
        return self.folders.get(category_id, FolderState.MISSING)


# Events ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BatchEnqueued:
    """A validated submission is appended to the queue.

    ``artifact_ids``, when given, holds one artifact id per file and overrides
    ``artifact_id`` for that file.
    """

    files: Tuple[FileCandidate, ...]
    category_id: str
    artifact_id: Optional[str]
    description: str
    folder_exists: bool = False
    artifact_ids: Tuple[Optional[str], ...] = ()


@dataclass(frozen=True, slots=True)
class FolderCreationStarted:
    category_id: str


@dataclass(frozen=True, slots=True)
class FolderCreated:
    category_id: str
    folder_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FolderCreationFailed:
    category_id: str
    error: str


@dataclass(frozen=True, slots=True)
class TransferStarted:
    entry_id: int


@dataclass(frozen=True, slots=True)
class TransferProgressed:
    entry_id: int
    progress: int


@dataclass(frozen=True, slots=True)
class TransferSucceeded:
    entry_id: int


@dataclass(frozen=True, slots=True)
class TransferFailed:
    entry_id: int
    error: str


@dataclass(frozen=True, slots=True)
class RetryRequested:
    """Every failed entry goes back to pending."""


@dataclass(frozen=True, slots=True)
class QueueCleared:
    """Every entry is removed regardless of status."""


QueueEvent = (
    BatchEnqueued
    | FolderCreationStarted
    | FolderCreated
    | FolderCreationFailed
    | TransferStarted
    | TransferProgressed
    | TransferSucceeded
    | TransferFailed
    | RetryRequested
    | QueueCleared
)


@dataclass(frozen=True, slots=True)
class BatchDrained:
    """Emitted once every entry of a batch reached a terminal status.

    Attributes:
        batch_id: Drained batch.
        completed: Entries that completed.
        failed: Entries that failed.
        retry: Whether the batch was created by a retry.
    """

    batch_id: int
    completed: int
    failed: int
    retry: bool = False


__all__ = [
    "BatchDrained",
    "BatchEnqueued",
    "EntryStatus",
    "FolderCreated",
    "FolderCreationFailed",
    "FolderCreationStarted",
    "FolderState",
    "QueueCleared",
    "QueueEntry",
    "QueueEvent",
    "RetryRequested",
    "TransferFailed",
    "TransferProgressed",
    "TransferStarted",
    "TransferSucceeded",
    "UploadQueue",
]
