"""Completion data models."""

from __future__ import annotations

from typing import FrozenSet, Iterable, List

from pydantic import BaseModel, ConfigDict, Field


class UploadedArtifacts(BaseModel):
    """Artifact ids already satisfied for the current venture.

    Supplied by the persistence layer together with its loading flag; the set
    may lag the queue by one batch until the caller refetches.
    """

    model_config = ConfigDict(frozen=True)

    artifact_ids: FrozenSet[str] = Field(default_factory=frozenset)
    loading: bool = False

    @classmethod
    def of(cls, artifact_ids: Iterable[str], *, loading: bool = False) -> "UploadedArtifacts":
        return cls(artifact_ids=frozenset(artifact_ids), loading=loading)

    @classmethod
    def pending(cls) -> "UploadedArtifacts":
        """Return an empty set flagged as still loading."""
        return cls(loading=True)

    @property
    def loaded(self) -> bool:
        return not self.loading and bool(self.artifact_ids)

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self.artifact_ids


class CategoryProgress(BaseModel):
    """Completion snapshot for one category at one stage.

    Attributes:
        category_id: Category identifier.
        name: Category display name.
        required: Number of stage-applicable artifacts.
        uploaded: Number of stage-applicable artifacts already uploaded.
        remaining: Remaining artifact ids, highest priority first.
        complete: Whether the category is reported complete.
        not_applicable: Whether the stage has no artifacts in the category.
        score_uploaded: Score contribution of uploaded artifacts.
        score_available: Score contribution of every applicable artifact.
    """

    category_id: str
    name: str
    required: int
    uploaded: int
    remaining: List[str] = Field(default_factory=list)
    complete: bool
    not_applicable: bool
    score_uploaded: int = 0
    score_available: int = 0


__all__ = ["CategoryProgress", "UploadedArtifacts"]
