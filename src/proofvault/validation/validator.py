"""File validation against artifact format and size rules."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from proofvault.catalog.errors import CatalogError
from proofvault.catalog.models import Artifact, ArtifactCatalog

from .models import FileCandidate, ValidationResult

LOGGER = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def format_file_size(size_bytes: int) -> str:
    """Return a size rounded half up to whole megabytes, e.g. ``25MB``."""
    return f"{int(size_bytes / BYTES_PER_MB + 0.5)}MB"


class FileValidator:
    """Check candidate files against the rules of the artifact they claim to satisfy."""

    def __init__(self, catalog: ArtifactCatalog) -> None:
        self._catalog = catalog

    def validate(
        self,
        file: FileCandidate,
        category_id: str,
        artifact_id: Optional[str] = None,
    ) -> ValidationResult:
        """Validate one file.

        With ``artifact_id`` the file is checked against that artifact. Without
        it (folder submissions) the file is checked against the most permissive
        artifact of the category that accepts its extension.

        Args:
            file: Candidate file.
            category_id: Destination category.
            artifact_id: Optional artifact the file targets.

        Returns:
            ValidationResult: Validity, accumulated errors, and the artifact used.
        """
        if artifact_id:
            try:
                artifact = self._catalog.artifact(category_id, artifact_id)
            except CatalogError:
                return ValidationResult.failure("Invalid artifact type")
            return self.validate_against_artifact(file, artifact)

        try:
            category = self._catalog.category(category_id)
        except CatalogError:
            return ValidationResult.failure("Invalid category")

        extension = file.extension
        matching = [
            artifact for artifact in category.artifacts.values() if extension in artifact.allowed_formats
        ]
        if not matching:
            return ValidationResult.failure(f"File type not allowed in {category.name} folder")

        # max() keeps the first of equal sizes, so ties resolve in declaration order.
        artifact = max(matching, key=lambda candidate: candidate.max_size_bytes)
        LOGGER.debug("Bulk validation of %s matched artifact %s.", file.name, artifact.id)
        return self.validate_against_artifact(file, artifact)

    def validate_against_artifact(self, file: FileCandidate, artifact: Artifact) -> ValidationResult:
        """Check format and size independently and report every violation."""
        errors = []
        if file.extension not in artifact.allowed_formats:
            errors.append(f"Invalid format. Allowed: {artifact.formats_label()}")
        if file.size_bytes > artifact.max_size_bytes:
            errors.append(f"File too large. Max: {format_file_size(artifact.max_size_bytes)}")
        return ValidationResult(valid=not errors, errors=errors, matched_artifact=artifact)

    def validate_many(
        self,
        files: Iterable[FileCandidate],
        category_id: str,
        artifact_id: Optional[str] = None,
    ) -> Dict[str, ValidationResult]:
        """Validate several files, keyed by :attr:`FileCandidate.key`."""
        return {file.key: self.validate(file, category_id, artifact_id) for file in files}


__all__ = ["BYTES_PER_MB", "FileValidator", "format_file_size"]
