"""Catalog lookup errors."""


class CatalogError(Exception):
    """Base exception for catalog loading and lookups."""


class UnknownCategoryError(CatalogError):
    """Raised when a category identifier is not present in the catalog."""


class UnknownArtifactError(CatalogError):
    """Raised when an artifact identifier is not present in its category."""
