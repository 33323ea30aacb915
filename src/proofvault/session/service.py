"""Vault session tying the gate, validator, tracker, and upload queue together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from proofvault.catalog.models import ArtifactCatalog, GrowthStage
from proofvault.completion.models import UploadedArtifacts
from proofvault.completion.tracker import CompletionTracker
from proofvault.config.models import VaultConfig
from proofvault.uploads.manager import UploadQueueManager
from proofvault.uploads.models import BatchDrained, QueueEntry
from proofvault.validation.gate import check_requirements, upload_gate_status
from proofvault.validation.models import FileCandidate, GateStatus, Selection
from proofvault.validation.validator import FileValidator

LOGGER = logging.getLogger(__name__)

ConsentGate = Callable[[str], bool]


@dataclass(slots=True)
class SubmissionReport:
    """Outcome of one submission attempt.

    Attributes:
        requirement_errors: Missing or invalid metadata; nothing was validated.
        file_errors: Validation errors keyed by rejected file path, or name when no path is known.
        enqueued: Queue entries created for accepted files.
    """

    requirement_errors: List[str] = field(default_factory=list)
    file_errors: Dict[str, List[str]] = field(default_factory=dict)
    enqueued: List[QueueEntry] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return bool(self.enqueued)


class VaultSession:
    """Drive one user's interaction with the document vault.

    The session holds the current selection and the uploaded-artifact snapshot;
    the catalog is read-only and the queue belongs to the manager. Switching the
    selection never cancels work already queued.
    """

    def __init__(
        self,
        catalog: ArtifactCatalog,
        *,
        stage: GrowthStage | str | None = None,
        uploaded: UploadedArtifacts | None = None,
        manager: UploadQueueManager | None = None,
        config: VaultConfig | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            catalog: Artifact catalog.
            stage: Growth stage of the venture.
            uploaded: Artifacts already on record.
            manager: Upload queue manager; a fresh one is created when omitted.
            config: Loaded configuration supplying validation limits.
        """
        self._config = config or VaultConfig()
        self._tracker = CompletionTracker(catalog, stage, uploaded)
        self._validator = FileValidator(catalog)
        self._manager = manager or UploadQueueManager()
        self._selection: Optional[Selection] = None
        self._manager.subscribe(self._on_batch_drained)

    @property
    def tracker(self) -> CompletionTracker:
        return self._tracker

    @property
    def manager(self) -> UploadQueueManager:
        return self._manager

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    def refresh_uploaded(self, uploaded: UploadedArtifacts) -> None:
        """Replace the uploaded-artifact snapshot after the caller refetches it."""
        self._tracker = self._tracker.with_uploaded(uploaded)

    def select(
        self, category_id: str, artifact_id: Optional[str] = None, description: str = ""
    ) -> Selection:
        self._selection = Selection(
            category_id=category_id, artifact_id=artifact_id, description=description
        )
        return self._selection

    def gate(self) -> GateStatus:
        """Return the submission gate for the current selection."""
        if self._selection is None:
            return GateStatus(blocked=True, reasons=["Please select a category"])
        return upload_gate_status(
            self._tracker, self._selection, self._config.validation.max_description_length
        )

    def open_picker(self, consent: ConsentGate, *, folder_mode: bool = False) -> bool:
        """Ask the consent collaborator before a file or folder picker opens."""
        prompt = (
            "Upload a folder of evidence to your vault?"
            if folder_mode
            else "Upload evidence files to your vault?"
        )
        allowed = bool(consent(prompt))
        if not allowed:
            LOGGER.info("Upload cancelled at the consent prompt.")
        return allowed

    def submit(
        self,
        files: Iterable[FileCandidate],
        *,
        folder_mode: bool = False,
        folder_exists: bool = False,
    ) -> SubmissionReport:
        """Validate ``files`` for the current selection and queue the accepted ones.

        Requirement errors stop the submission before any file is inspected.
        Files failing validation are reported and never queued.

        Args:
            files: Candidate files.
            folder_mode: Validate each file against the whole category.
            folder_exists: Whether the category folder is known to exist remotely.

        Returns:
            SubmissionReport: Requirement errors, per-file errors, and queued entries.
        """
        report = SubmissionReport()
        selection = self._selection
        gate = self.gate()
        if gate.blocked or selection is None:
            report.requirement_errors = list(gate.reasons)
            return report

        # Folder submissions cannot be pre-classified, so validate against the category.
        target_artifact = None if folder_mode else selection.artifact_id

        accepted: List[FileCandidate] = []
        matched: List[Optional[str]] = []
        for file in files:
            result = self._validator.validate(file, selection.category_id, target_artifact)
            if result.valid:
                accepted.append(file)
                artifact = result.matched_artifact
                matched.append(artifact.id if artifact is not None else selection.artifact_id)
            else:
                report.file_errors[file.key] = list(result.errors)

        if report.file_errors:
            LOGGER.info("Rejected %d file(s) during validation.", len(report.file_errors))
        report.enqueued = self._manager.enqueue(
            accepted,
            selection.category_id,
            selection.artifact_id,
            selection.description.strip(),
            folder_exists=folder_exists,
            artifact_ids=matched if folder_mode else None,
        )
        return report

    def requirement_errors(self) -> List[str]:
        if self._selection is None:
            return ["Please select a category"]
        return check_requirements(self._selection, self._config.validation.max_description_length)

    def _on_batch_drained(self, drained: BatchDrained) -> None:
        if drained.retry or self._selection is None:
            return
        self._selection = self._selection.cleared()
        LOGGER.debug("Cleared selection after batch %d.", drained.batch_id)


__all__ = ["ConsentGate", "SubmissionReport", "VaultSession"]
