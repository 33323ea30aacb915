"""Validation data models."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from proofvault.catalog.models import Artifact


class FileCandidate(BaseModel):
    """A file offered for upload.

    Attributes:
        name: File name including its extension.
        size_bytes: File size in bytes.
        path: Local path when the file lives on disk.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size_bytes: int = Field(ge=0)
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path) -> "FileCandidate":
        """Describe a file on disk."""
        resolved = path.expanduser()
        return cls(name=resolved.name, size_bytes=resolved.stat().st_size, path=resolved)

    @property
    def key(self) -> str:
        """Return the local path when known, otherwise the bare name.

        Files from different folders may share a name, so reports are keyed by this.
        """
        return str(self.path) if self.path is not None else self.name

    @property
    def extension(self) -> str:
        """Return the lowercase text after the last dot, prefixed with a dot."""
        return "." + self.name.rsplit(".", 1)[-1].lower()


class ValidationResult(BaseModel):
    """Outcome of validating one file against an artifact or category."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    matched_artifact: Optional[Artifact] = None

    @classmethod
    def failure(cls, *errors: str) -> "ValidationResult":
        return cls(valid=False, errors=list(errors))


class Selection(BaseModel):
    """Metadata the user attaches to a submission.

    Attributes:
        category_id: Destination category.
        artifact_id: Artifact the files claim to satisfy.
        description: Free-text description of the evidence.
    """

    category_id: str
    artifact_id: Optional[str] = None
    description: str = ""

    def cleared(self) -> "Selection":
        """Return the selection with its per-batch metadata reset."""
        return self.model_copy(update={"artifact_id": None, "description": ""})


class GateStatus(BaseModel):
    """Whether submission is blocked and why."""

    blocked: bool
    reasons: List[str] = Field(default_factory=list)


__all__ = ["FileCandidate", "GateStatus", "Selection", "ValidationResult"]
