"""Artifact catalog and stage filtering."""

from .errors import CatalogError, UnknownArtifactError, UnknownCategoryError
from .loader import catalog_from_mapping, default_catalog, load_catalog
from .models import (
    PRIORITY_RANK,
    Artifact,
    ArtifactCatalog,
    ArtifactKind,
    Category,
    GrowthStage,
    Priority,
    priority_rank,
)
from .stages import (
    artifact_count_by_stage,
    artifacts_for_category,
    artifacts_for_stage,
    category_list,
    filter_catalog_by_stage,
    is_artifact_visible_for_stage,
)

__all__ = [
    "PRIORITY_RANK",
    "Artifact",
    "ArtifactCatalog",
    "ArtifactKind",
    "CatalogError",
    "Category",
    "GrowthStage",
    "Priority",
    "UnknownArtifactError",
    "UnknownCategoryError",
    "artifact_count_by_stage",
    "artifacts_for_category",
    "artifacts_for_stage",
    "catalog_from_mapping",
    "category_list",
    "default_catalog",
    "filter_catalog_by_stage",
    "is_artifact_visible_for_stage",
    "load_catalog",
    "priority_rank",
]
