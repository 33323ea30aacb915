"""Load artifact catalogs from YAML documents."""

from __future__ import annotations

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .errors import CatalogError
from .models import ArtifactCatalog

LOGGER = logging.getLogger(__name__)

DEFAULT_CATALOG_RESOURCE = "catalog.yaml"


def load_catalog(path: Path | None = None) -> ArtifactCatalog:
    """Load a catalog from ``path`` or from the bundled default.

    Args:
        path: Optional YAML file describing categories and artifacts.

    Returns:
        ArtifactCatalog: Validated, immutable catalog.

    Raises:
        CatalogError: If the file cannot be read, parsed, or validated.
    """
    if path is None:
        resource = resources.files("proofvault.catalog").joinpath("data").joinpath(
            DEFAULT_CATALOG_RESOURCE
        )
        source = "bundled catalog"
        raw_text = resource.read_text(encoding="utf-8")
    else:
        path = path.expanduser()
        source = str(path)
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CatalogError(f"Unable to read catalog {source}: {exc}") from exc

    try:
        raw = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as exc:
        raise CatalogError(f"Failed to parse catalog {source}: {exc}") from exc

    catalog = catalog_from_mapping(raw, source=source)
    LOGGER.debug(
        "Loaded catalog %s (%s) with %d categories.", source, catalog.version, len(catalog.categories)
    )
    return catalog


def catalog_from_mapping(raw: Any, *, source: str = "catalog") -> ArtifactCatalog:
    """Build a catalog from a plain mapping, injecting ids from mapping keys."""
    if not isinstance(raw, Mapping):
        raise CatalogError(f"{source} must contain a mapping at the top level.")

    categories = raw.get("categories")
    if not isinstance(categories, Mapping):
        raise CatalogError(f"{source} must define a 'categories' mapping.")

    payload: dict[str, Any] = {"version": str(raw.get("version", "unversioned")), "categories": {}}
    for category_key, category_data in categories.items():
        category_id = str(category_key)
        if not isinstance(category_data, Mapping):
            raise CatalogError(f"Category {category_id} in {source} must be a mapping.")
        artifacts_data = category_data.get("artifacts") or {}
        if not isinstance(artifacts_data, Mapping):
            raise CatalogError(f"Artifacts of {category_id} in {source} must be a mapping.")
        artifacts = {
            str(artifact_key): {**dict(artifact_data or {}), "id": str(artifact_key)}
            for artifact_key, artifact_data in artifacts_data.items()
        }
        payload["categories"][category_id] = {
            **{key: value for key, value in category_data.items() if key != "artifacts"},
            "id": category_id,
            "artifacts": artifacts,
        }

    try:
        return ArtifactCatalog.model_validate(payload)
    except ValidationError as exc:
        raise CatalogError(f"Invalid catalog {source}: {exc}") from exc


@lru_cache(maxsize=1)
def default_catalog() -> ArtifactCatalog:
    """Return the bundled catalog, loaded once per process."""
    return load_catalog()


__all__ = ["DEFAULT_CATALOG_RESOURCE", "catalog_from_mapping", "default_catalog", "load_catalog"]
