"""Sequential upload queue and transfer collaborators."""

from .errors import InvalidTransitionError, QueueError, TransferError
from .manager import BatchListener, UploadQueueManager
from .models import (
    BatchDrained,
    EntryStatus,
    FolderState,
    QueueEntry,
    UploadQueue,
)
from .transfer import DirectoryTransfer, TransferClient

__all__ = [
    "BatchDrained",
    "BatchListener",
    "DirectoryTransfer",
    "EntryStatus",
    "FolderState",
    "InvalidTransitionError",
    "QueueEntry",
    "QueueError",
    "TransferClient",
    "TransferError",
    "UploadQueue",
    "UploadQueueManager",
]
