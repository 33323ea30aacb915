"""Stage-gated projections of the artifact catalog."""

from __future__ import annotations

from typing import Dict, List, Tuple

from .errors import CatalogError
from .models import Artifact, ArtifactCatalog, Category, GrowthStage


def artifacts_for_category(catalog: ArtifactCatalog, category_id: str) -> List[Artifact]:
    """Return every artifact of a category in declaration order, ignoring stages.

    Raises:
        UnknownCategoryError: If the category is not registered.
    """
    return list(catalog.category(category_id).artifacts.values())


def artifacts_for_stage(
    catalog: ArtifactCatalog, stage: GrowthStage | str | None
) -> Dict[str, List[Artifact]]:
    """Project every category to the artifacts applicable to ``stage``.

    Categories left without artifacts are dropped from the result. An absent or
    unknown stage applies no narrowing at all.

    Args:
        catalog: Catalog to project.
        stage: Growth stage, its label, or None.

    Returns:
        Dict[str, List[Artifact]]: Category id to visible artifacts, in catalog order.
    """
    resolved = GrowthStage.parse(stage)
    projected: Dict[str, List[Artifact]] = {}
    for category_id, category in catalog.categories.items():
        visible = [artifact for artifact in category.artifacts.values() if artifact.applies_to(resolved)]
        if visible:
            projected[category_id] = visible
    return projected


def filter_catalog_by_stage(
    catalog: ArtifactCatalog, stage: GrowthStage | str | None
) -> ArtifactCatalog:
    """Return a catalog restricted to ``stage`` with empty categories removed."""
    if GrowthStage.parse(stage) is None:
        return catalog
    projected = artifacts_for_stage(catalog, stage)
    categories: Dict[str, Category] = {
        category_id: catalog.categories[category_id].with_artifacts(
            {artifact.id: artifact for artifact in artifacts}
        )
        for category_id, artifacts in projected.items()
    }
    return catalog.with_categories(categories)


def artifact_count_by_stage(catalog: ArtifactCatalog, stage: GrowthStage | str | None) -> int:
    """Return the number of artifacts visible for ``stage``."""
    return sum(len(artifacts) for artifacts in artifacts_for_stage(catalog, stage).values())


def is_artifact_visible_for_stage(
    catalog: ArtifactCatalog,
    category_id: str,
    artifact_id: str,
    stage: GrowthStage | str | None,
) -> bool:
    """Return whether an artifact is shown for ``stage``.

    Unknown categories or artifacts are never visible; an absent stage shows everything.
    """
    resolved = GrowthStage.parse(stage)
    if resolved is None:
        return True
    try:
        artifact = catalog.artifact(category_id, artifact_id)
    except CatalogError:
        return False
    return artifact.applies_to(resolved)


def category_list(catalog: ArtifactCatalog) -> List[Tuple[str, Category]]:
    return list(catalog.categories.items())


__all__ = [
    "artifact_count_by_stage",
    "artifacts_for_category",
    "artifacts_for_stage",
    "category_list",
    "filter_catalog_by_stage",
    "is_artifact_visible_for_stage",
]
