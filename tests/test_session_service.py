"""Tests for the vault session workflow."""

from __future__ import annotations

from pathlib import Path
from typing import List

from proofvault.catalog import ArtifactCatalog, catalog_from_mapping
from proofvault.completion import UploadedArtifacts
from proofvault.config import VaultConfig
from proofvault.session import VaultSession
from proofvault.uploads import EntryStatus, QueueEntry, TransferError
from proofvault.uploads.transfer import ProgressCallback
from proofvault.validation import FileCandidate

MB = 1024 * 1024


def _catalog() -> ArtifactCatalog:
    return catalog_from_mapping(
        {
            "categories": {
                "0_Overview": {
                    "name": "Overview",
                    "artifacts": {
                        "pitch_deck": {
                            "name": "Pitch deck",
                            "allowed_formats": [".pdf"],
                            "max_size_bytes": 25 * MB,
                            "stages": ["Seed"],
                        },
                        "incorporation_docs": {
                            "name": "Incorporation docs",
                            "allowed_formats": [".pdf", ".png"],
                            "max_size_bytes": 20 * MB,
                            "stages": ["Seed"],
                            "kind": "Folder",
                        },
                    },
                }
            }
        }
    )


class _RecordingTransfer:
    def __init__(self, fail: set[str] | None = None) -> None:
        self.fail = fail or set()
        self.uploaded: List[str] = []

    def folder_exists(self, category_id: str) -> bool:
        return True

    def create_folder(self, category_id: str) -> str:
        return category_id

    def upload(self, entry: QueueEntry, report_progress: ProgressCallback) -> None:
        if entry.file.name in self.fail:
            raise TransferError("storage unavailable")
        self.uploaded.append(entry.file.name)


def test_gate_requires_selection() -> None:
    session = VaultSession(_catalog(), stage="Seed")

    status = session.gate()

    assert status.blocked is True
    assert status.reasons == ["Please select a category"]
    assert session.requirement_errors() == ["Please select a category"]


def test_submit_without_selection_reports_requirement() -> None:
    session = VaultSession(_catalog(), stage="Seed")

    report = session.submit([FileCandidate(name="deck.pdf", size_bytes=MB)])

    assert report.requirement_errors == ["Please select a category"]
    assert report.enqueued == []
    assert session.manager.entries == ()


def test_submit_with_missing_metadata_validates_nothing() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview")

    report = session.submit([FileCandidate(name="deck.pdf", size_bytes=MB)])

    assert report.requirement_errors == ["Please select an artifact type", "Please provide a description"]
    assert report.file_errors == {}
    assert report.accepted is False
    assert session.manager.entries == ()


def test_submit_queues_only_valid_files() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview", "pitch_deck", "  Q3 deck  ")

    report = session.submit(
        [
            FileCandidate(name="deck.pdf", size_bytes=MB),
            FileCandidate(name="deck.key", size_bytes=MB),
            FileCandidate(name="huge.pdf", size_bytes=30 * MB),
        ]
    )

    assert [entry.file.name for entry in report.enqueued] == ["deck.pdf"]
    assert report.file_errors == {
        "deck.key": ["Invalid format. Allowed: .pdf"],
        "huge.pdf": ["File too large. Max: 25MB"],
    }
    assert report.enqueued[0].description == "Q3 deck"
    assert report.accepted is True


def test_folder_mode_validates_against_category() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview", "incorporation_docs", "Certificates")

    report = session.submit(
        [FileCandidate(name="scan.png", size_bytes=MB), FileCandidate(name="notes.txt", size_bytes=1)],
        folder_mode=True,
    )

    assert [entry.file.name for entry in report.enqueued] == ["scan.png"]
    assert report.enqueued[0].artifact_id == "incorporation_docs"
    assert report.file_errors == {"notes.txt": ["File type not allowed in Overview folder"]}


def test_folder_mode_tags_each_file_with_matched_artifact() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview", "incorporation_docs", "Company documents")

    report = session.submit(
        [FileCandidate(name="deck.pdf", size_bytes=MB), FileCandidate(name="scan.png", size_bytes=MB)],
        folder_mode=True,
    )

    assert [entry.artifact_id for entry in report.enqueued] == ["pitch_deck", "incorporation_docs"]


def test_rejections_with_same_name_are_reported_per_path() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview", "pitch_deck", "Deck")

    report = session.submit(
        [
            FileCandidate(name="deck.key", size_bytes=MB, path=Path("q1/deck.key")),
            FileCandidate(name="deck.key", size_bytes=MB, path=Path("q2/deck.key")),
        ]
    )

    assert len(report.file_errors) == 2
    assert report.file_errors[str(Path("q1/deck.key"))] == ["Invalid format. Allowed: .pdf"]
    assert report.file_errors[str(Path("q2/deck.key"))] == ["Invalid format. Allowed: .pdf"]


def test_description_limit_comes_from_config() -> None:
    config = VaultConfig.model_validate({"validation": {"max_description_length": 10}})
    session = VaultSession(_catalog(), stage="Seed", config=config)
    session.select("0_Overview", "pitch_deck", "a description that is too long")

    assert session.gate().reasons == ["Description must be 10 characters or less"]


def test_drained_batch_clears_selection_but_retry_does_not() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    transfer = _RecordingTransfer(fail={"b.pdf"})
    session.select("0_Overview", "pitch_deck", "Deck")
    session.submit([FileCandidate(name="a.pdf", size_bytes=1), FileCandidate(name="b.pdf", size_bytes=1)])

    session.manager.process(transfer)

    assert session.selection is not None
    assert session.selection.category_id == "0_Overview"
    assert session.selection.artifact_id is None
    assert session.selection.description == ""

    session.select("0_Overview", "incorporation_docs", "Docs")
    transfer.fail.clear()
    session.manager.retry_failed()
    session.manager.process(transfer)

    assert session.selection.artifact_id == "incorporation_docs"
    assert [entry.status for entry in session.manager.entries] == [EntryStatus.COMPLETED] * 2


def test_selection_change_keeps_queued_entries() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview", "pitch_deck", "Deck")
    session.submit([FileCandidate(name="a.pdf", size_bytes=1)])

    session.select("0_Overview", "incorporation_docs", "Docs")

    assert len(session.manager.pending_entries()) == 1


def test_open_picker_respects_consent() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    prompts: List[str] = []

    def _decline(prompt: str) -> bool:
        prompts.append(prompt)
        return False

    assert session.open_picker(_decline, folder_mode=True) is False
    assert session.open_picker(lambda _: True) is True
    assert "folder" in prompts[0]


def test_refresh_uploaded_updates_gate() -> None:
    session = VaultSession(_catalog(), stage="Seed")
    session.select("0_Overview", "pitch_deck", "Deck")
    assert session.gate().blocked is False

    session.refresh_uploaded(UploadedArtifacts.of(["pitch_deck"]))

    assert session.gate().reasons == [
        "Pitch deck is not required for this stage or is already uploaded"
    ]
