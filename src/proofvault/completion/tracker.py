"""Per-category completion tracking against the uploaded artifact set."""

from __future__ import annotations

import logging
from typing import Iterable, List

from proofvault.catalog.models import Artifact, ArtifactCatalog, GrowthStage, priority_rank
from proofvault.catalog.stages import artifacts_for_stage

from .models import CategoryProgress, UploadedArtifacts

LOGGER = logging.getLogger(__name__)


def sort_by_priority(
    artifacts: Iterable[Artifact], stage: GrowthStage | None = None
) -> List[Artifact]:
    """Return artifacts ordered critical first; ties keep their original order."""
    return sorted(artifacts, key=lambda artifact: priority_rank(artifact.priority_for(stage)))


class CompletionTracker:
    """Decide, per category, which artifacts remain for a stage and uploaded set."""

    def __init__(
        self,
        catalog: ArtifactCatalog,
        stage: GrowthStage | str | None = None,
        uploaded: UploadedArtifacts | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            catalog: Catalog describing categories and artifacts.
            stage: Growth stage of the venture; None shows every artifact.
            uploaded: Uploaded artifact ids and their loading flag.
        """
        self._catalog = catalog
        self._stage = GrowthStage.parse(stage)
        self._uploaded = uploaded if uploaded is not None else UploadedArtifacts()
        self._visible = artifacts_for_stage(catalog, self._stage)

    @property
    def catalog(self) -> ArtifactCatalog:
        return self._catalog

    @property
    def stage(self) -> GrowthStage | None:
        return self._stage

    @property
    def uploaded(self) -> UploadedArtifacts:
        return self._uploaded

    def with_uploaded(self, uploaded: UploadedArtifacts) -> "CompletionTracker":
        """Return a tracker for the same catalog and stage with a refreshed uploaded set."""
        return CompletionTracker(self._catalog, self._stage, uploaded)

    def applicable_artifacts(self, category_id: str) -> List[Artifact]:
        """Return the stage-filtered artifacts of a category.

        Raises:
            UnknownCategoryError: If the category is not registered.
        """
        self._catalog.category(category_id)
        return list(self._visible.get(category_id, []))

    def remaining_artifacts(self, category_id: str) -> List[Artifact]:
        """Return applicable artifacts not yet uploaded, highest priority first."""
        remaining = [
            artifact
            for artifact in self.applicable_artifacts(category_id)
            if artifact.id not in self._uploaded
        ]
        return sort_by_priority(remaining, self._stage)

    def has_no_artifacts_required(self, category_id: str) -> bool:
        """Return True when the stage has no artifacts in this category at all."""
        return not self.applicable_artifacts(category_id)

    def is_category_complete(self, category_id: str) -> bool:
        """Return True when nothing more is needed in the category.

        A category is never reported complete while the uploaded set is still
        loading or empty, unless it has no applicable artifacts.
        """
        if self.has_no_artifacts_required(category_id):
            return True
        if not self._uploaded.loaded:
            return False
        return not self.remaining_artifacts(category_id)

    def progress(self, category_id: str) -> CategoryProgress:
        """Return a completion snapshot for one category."""
        category = self._catalog.category(category_id)
        applicable = self.applicable_artifacts(category_id)
        uploaded = [artifact for artifact in applicable if artifact.id in self._uploaded]
        remaining = self.remaining_artifacts(category_id)
        return CategoryProgress(
            category_id=category_id,
            name=category.name,
            required=len(applicable),
            uploaded=len(uploaded),
            remaining=[artifact.id for artifact in remaining],
            complete=self.is_category_complete(category_id),
            not_applicable=not applicable,
            score_uploaded=sum(artifact.score_contribution for artifact in uploaded),
            score_available=sum(artifact.score_contribution for artifact in applicable),
        )

    def overview(self) -> List[CategoryProgress]:
        """Return progress for every catalog category in declaration order."""
        snapshots = [self.progress(category_id) for category_id in self._catalog.categories]
        LOGGER.debug(
            "Completion overview for stage %s: %d/%d categories complete.",
            self._stage.value if self._stage else "any",
            sum(1 for snapshot in snapshots if snapshot.complete),
            len(snapshots),
        )
        return snapshots


__all__ = ["CompletionTracker", "sort_by_priority"]
