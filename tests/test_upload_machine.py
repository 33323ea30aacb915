"""Tests for the pure upload queue transitions."""

from __future__ import annotations

import pytest

from proofvault.uploads import EntryStatus, FolderState, InvalidTransitionError, UploadQueue
from proofvault.uploads import machine
from proofvault.uploads.models import (
    BatchEnqueued,
    FolderCreated,
    FolderCreationFailed,
    FolderCreationStarted,
    QueueCleared,
    RetryRequested,
    TransferFailed,
    TransferProgressed,
    TransferStarted,
    TransferSucceeded,
)
from proofvault.validation import FileCandidate


def _files(*names: str) -> tuple[FileCandidate, ...]:
    return tuple(FileCandidate(name=name, size_bytes=100) for name in names)


def _queue(*names: str, folder_exists: bool = True) -> UploadQueue:
    return machine.apply(
        UploadQueue(),
        BatchEnqueued(
            files=_files(*names),
            category_id="0_Overview",
            artifact_id="pitch_deck",
            description="Deck",
            folder_exists=folder_exists,
        ),
    )


def _run(queue: UploadQueue, entry_id: int, succeed: bool = True) -> UploadQueue:
    queue = machine.apply(queue, TransferStarted(entry_id))
    if succeed:
        return machine.apply(queue, TransferSucceeded(entry_id))
    return machine.apply(queue, TransferFailed(entry_id, "network down"))


def test_enqueue_assigns_ids_and_batch() -> None:
    queue = _queue("a.pdf", "b.pdf")

    assert [entry.id for entry in queue.entries] == [1, 2]
    assert {entry.batch_id for entry in queue.entries} == {1}
    assert all(entry.status is EntryStatus.PENDING for entry in queue.entries)
    assert queue.current_index == 0
    assert queue.folder_state("0_Overview") is FolderState.READY
    assert queue.next_batch_id == 2


def test_empty_batch_is_rejected() -> None:
    with pytest.raises(InvalidTransitionError):
        machine.apply(UploadQueue(), BatchEnqueued((), "0_Overview", "pitch_deck", "Deck"))


def test_enqueue_tags_each_file_with_its_own_artifact() -> None:
    queue = machine.apply(
        UploadQueue(),
        BatchEnqueued(
            files=_files("deck.pdf", "scan.png"),
            category_id="0_Overview",
            artifact_id=None,
            description="Docs",
            artifact_ids=("pitch_deck", "incorporation_docs"),
        ),
    )

    assert [entry.artifact_id for entry in queue.entries] == ["pitch_deck", "incorporation_docs"]


def test_enqueue_rejects_mismatched_artifact_ids() -> None:
    event = BatchEnqueued(
        files=_files("deck.pdf", "scan.png"),
        category_id="0_Overview",
        artifact_id=None,
        description="Docs",
        artifact_ids=("pitch_deck",),
    )

    with pytest.raises(InvalidTransitionError, match="one artifact per file"):
        machine.apply(UploadQueue(), event)


def test_completions_follow_enqueue_order() -> None:
    queue = _queue("a.pdf", "b.pdf", "c.pdf")
    completed_order = []

    while True:
        action = machine.next_action(queue)
        if isinstance(action, machine.Idle):
            break
        assert isinstance(action, machine.StartTransfer)
        queue = _run(queue, action.entry.id)
        completed_order.append(action.entry.id)

    assert completed_order == [1, 2, 3]
    assert queue.current_index == 3


def test_failure_does_not_stop_later_entries() -> None:
    queue = _queue("a.pdf", "b.pdf", "c.pdf")

    queue = _run(queue, 1)
    queue = _run(queue, 2, succeed=False)
    action = machine.next_action(queue)
    assert isinstance(action, machine.StartTransfer)
    assert action.entry.id == 3
    queue = _run(queue, 3)

    statuses = [entry.status for entry in queue.entries]
    assert statuses == [EntryStatus.COMPLETED, EntryStatus.FAILED, EntryStatus.COMPLETED]
    assert queue.entries[1].error == "network down"


def test_only_one_transfer_at_a_time() -> None:
    queue = machine.apply(_queue("a.pdf", "b.pdf"), TransferStarted(1))

    with pytest.raises(InvalidTransitionError, match="still uploading"):
        machine.apply(queue, TransferStarted(2))
    assert isinstance(machine.next_action(queue), machine.AwaitTransfer)


def test_entries_cannot_jump_the_queue() -> None:
    with pytest.raises(InvalidTransitionError, match="not next"):
        machine.apply(_queue("a.pdf", "b.pdf"), TransferStarted(2))


def test_terminal_events_require_uploading_entry() -> None:
    queue = _queue("a.pdf")

    with pytest.raises(InvalidTransitionError):
        machine.apply(queue, TransferSucceeded(1))
    with pytest.raises(InvalidTransitionError):
        machine.apply(queue, TransferFailed(99, "gone"))


def test_progress_is_clamped_and_success_sets_full() -> None:
    queue = machine.apply(_queue("a.pdf"), TransferStarted(1))

    queue = machine.apply(queue, TransferProgressed(1, 140))
    assert queue.entries[0].progress == 100
    queue = machine.apply(queue, TransferProgressed(1, 40))
    assert queue.entries[0].progress == 40
    queue = machine.apply(queue, TransferSucceeded(1))
    assert queue.entries[0].progress == 100


def test_retry_resets_only_failed_entries() -> None:
    queue = _queue("a.pdf", "b.pdf", "c.pdf")
    queue = _run(queue, 1)
    queue = _run(queue, 2, succeed=False)
    queue = _run(queue, 3, succeed=False)
    completed_before = queue.entries[0]

    queue = machine.apply(queue, RetryRequested())

    assert queue.entries[0] == completed_before
    assert [entry.status for entry in queue.entries[1:]] == [EntryStatus.PENDING, EntryStatus.PENDING]
    assert all(entry.error is None for entry in queue.entries[1:])
    assert queue.current_index == 1
    retry_batch = queue.entries[1].batch_id
    assert retry_batch in queue.retry_batches
    assert retry_batch != completed_before.batch_id


def test_retry_while_uploading_is_rejected() -> None:
    queue = _run(_queue("a.pdf", "b.pdf"), 1, succeed=False)
    queue = machine.apply(queue, TransferStarted(2))

    with pytest.raises(InvalidTransitionError):
        machine.apply(queue, RetryRequested())


def test_retry_without_failures_is_a_noop() -> None:
    queue = _run(_queue("a.pdf"), 1)

    assert machine.apply(queue, RetryRequested()) == queue


def test_transfer_waits_for_folder() -> None:
    queue = _queue("a.pdf", folder_exists=False)

    action = machine.next_action(queue)
    assert isinstance(action, machine.CreateFolder)
    with pytest.raises(InvalidTransitionError, match="not ready"):
        machine.apply(queue, TransferStarted(1))

    queue = machine.apply(queue, FolderCreationStarted("0_Overview"))
    assert queue.folder_status == "Creating folder for 0_Overview..."
    assert isinstance(machine.next_action(queue), machine.AwaitFolder)
    with pytest.raises(InvalidTransitionError):
        machine.apply(queue, FolderCreationStarted("0_Overview"))

    queue = machine.apply(queue, FolderCreated("0_Overview", "/vault/0_Overview"))
    assert isinstance(machine.next_action(queue), machine.StartTransfer)


def test_folder_failure_blocks_whole_queue() -> None:
    queue = _queue("a.pdf", folder_exists=False)
    queue = machine.apply(queue, FolderCreationStarted("0_Overview"))

    queue = machine.apply(queue, FolderCreationFailed("0_Overview", "permission denied"))

    assert queue.precondition_error == "Folder creation failed for 0_Overview: permission denied"
    action = machine.next_action(queue)
    assert isinstance(action, machine.Blocked)
    with pytest.raises(InvalidTransitionError, match="blocked"):
        machine.apply(queue, TransferStarted(1))

    queue = machine.apply(queue, FolderCreationStarted("0_Overview"))
    assert queue.precondition_error is None


def test_retry_after_folder_failure_unblocks_queue() -> None:
    queue = _queue("a.pdf", folder_exists=False)
    queue = machine.apply(queue, FolderCreationStarted("0_Overview"))
    queue = machine.apply(queue, FolderCreationFailed("0_Overview", "permission denied"))

    queue = machine.apply(queue, RetryRequested())

    assert queue.precondition_error is None
    assert queue.folder_status == ""
    assert queue.folder_state("0_Overview") is FolderState.MISSING
    assert queue.retry_batches == frozenset()
    assert [entry.status for entry in queue.entries] == [EntryStatus.PENDING]
    action = machine.next_action(queue)
    assert isinstance(action, machine.CreateFolder)
    assert action.category_id == "0_Overview"


def test_clear_removes_entries_and_keeps_ready_folders() -> None:
    queue = _run(_queue("a.pdf", "b.pdf"), 1, succeed=False)
    queue = machine.apply(queue, FolderCreationFailed("1_Problem_Proof", "boom"))

    queue = machine.apply(queue, QueueCleared())

    assert queue.entries == ()
    assert queue.current_index == 0
    assert queue.precondition_error is None
    assert queue.folders == {"0_Overview": FolderState.READY}
    assert isinstance(machine.next_action(queue), machine.Idle)


def test_drained_batch_counts_outcomes() -> None:
    queue = _queue("a.pdf", "b.pdf")
    queue = _run(queue, 1)
    assert machine.drained_batch(queue, 1) is None

    queue = _run(queue, 2, succeed=False)
    drained = machine.drained_batch(queue, 1)

    assert drained is not None
    assert (drained.completed, drained.failed, drained.retry) == (1, 1, False)


def test_unsupported_event_is_rejected() -> None:
    with pytest.raises(InvalidTransitionError):
        machine.apply(UploadQueue(), object())  # type: ignore[arg-type]
