"""Transfer collaborators that move queued files to vault storage."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Protocol

from .errors import TransferError
from .models import QueueEntry

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

CHUNK_SIZE = 1024 * 1024


class TransferClient(Protocol):
    """Boundary to the storage that receives vault files.

    Implementations raise :class:`TransferError` for any failure so the queue
    can record it on the entry and keep going.
    """

    def folder_exists(self, category_id: str) -> bool: ...

    def create_folder(self, category_id: str) -> str: ...

    def upload(self, entry: QueueEntry, report_progress: ProgressCallback) -> None: ...


class DirectoryTransfer:
    """Copy vault files into ``root/<category_id>/`` on the local filesystem."""

    def __init__(self, root: Path, *, chunk_size: int = CHUNK_SIZE) -> None:
        self.root = root.expanduser()
        self.chunk_size = max(1, chunk_size)

    def folder_exists(self, category_id: str) -> bool:
        return (self.root / category_id).is_dir()

    def create_folder(self, category_id: str) -> str:
        """Create the category folder and return its path."""
        folder = self.root / category_id
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TransferError(f"Unable to create folder {folder}: {exc}") from exc
        LOGGER.info("Created vault folder %s.", folder)
        return str(folder)

    def upload(self, entry: QueueEntry, report_progress: ProgressCallback) -> None:
        """Copy the entry's file in chunks, reporting progress as a percentage."""
        source = entry.file.path
        if source is None:
            raise TransferError(f"{entry.file.name} has no local path to read from")

        target = self._unique_target(self.root / entry.category_id, entry.file.name)
        total = max(1, entry.file.size_bytes)
        copied = 0
        try:
            with source.open("rb") as reader, target.open("wb") as writer:
                while True:
                    chunk = reader.read(self.chunk_size)
                    if not chunk:
                        break
                    writer.write(chunk)
                    copied += len(chunk)
                    report_progress(min(99, copied * 100 // total))
        except OSError as exc:
            target.unlink(missing_ok=True)
            raise TransferError(f"Upload of {entry.file.name} failed: {exc}") from exc
        report_progress(100)
        LOGGER.debug("Copied %s to %s (%d bytes).", source, target, copied)

    def _unique_target(self, folder: Path, name: str) -> Path:
        target = folder / name
        stem, suffix = target.stem, target.suffix
        counter = 1
        while target.exists():
            target = folder / f"{stem}-{counter}{suffix}"
            counter += 1
        return target


__all__ = ["CHUNK_SIZE", "DirectoryTransfer", "ProgressCallback", "TransferClient"]
