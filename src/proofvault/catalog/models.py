"""Catalog data models describing categories, artifacts, and growth stages."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from .errors import CatalogError, UnknownArtifactError, UnknownCategoryError


def _frozen_mapping(value: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return a read-only view over a private copy of ``value``, keeping its order."""
    return MappingProxyType(dict(value))


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


def _stage_key(value: str) -> str:
    return " ".join(value.lower().replace("_", " ").replace("-", " ").split())


class GrowthStage(str, Enum):
    """Coarse maturity bucket that gates which artifacts are relevant."""

    PRE_SEED = "Pre-Seed"
    SEED = "Seed"
    SERIES_A = "Series A"

    @classmethod
    def parse(cls, value: "GrowthStage | str | None") -> Optional["GrowthStage"]:
        """Return the matching stage, or None for absent or unknown values."""
        if value is None or isinstance(value, GrowthStage):
            return value
        wanted = _stage_key(value)
        for stage in cls:
            if _stage_key(stage.value) == wanted:
                return stage
        return None


class Priority(str, Enum):
    """Upload priority of an artifact; lower rank surfaces first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self.value]


PRIORITY_RANK: Dict[str, int] = {"critical": 1, "high": 2, "medium": 3, "low": 4}


def priority_rank(value: "Priority | str | None") -> int:
    """Return the numeric rank for a priority, defaulting unknown values to ``low``."""
    if isinstance(value, Priority):
        return value.rank
    if value is None:
        return PRIORITY_RANK["low"]
    return PRIORITY_RANK.get(str(value).lower(), PRIORITY_RANK["low"])


class ArtifactKind(str, Enum):
    """Whether an artifact is submitted as a single file or a folder tree."""

    FILE = "File"
    FOLDER = "Folder"


class CatalogBaseModel(BaseModel):
    """Shared configuration for immutable catalog models."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Artifact(CatalogBaseModel):
    """A single document requirement with its format and size rules.

    Attributes:
        id: Globally unique artifact identifier.
        name: Display name.
        description: Short description of the expected content.
        allowed_formats: Accepted extensions, lowercase with a leading dot.
        max_size_bytes: Largest accepted file size.
        score_contribution: Points the artifact adds to the readiness score.
        mandatory: Whether the artifact is required for completion.
        kind: File or folder submission.
        stages: Growth stages for which the artifact is visible.
        priority: Default upload priority.
        stage_priorities: Optional per-stage priority overrides.
        upload_guidelines: Guidance text shown next to the picker.
    """

    id: str
    name: str
    description: str = ""
    allowed_formats: Tuple[str, ...]
    max_size_bytes: int = Field(gt=0)
    score_contribution: int = Field(default=0, ge=0)
    mandatory: bool = True
    kind: ArtifactKind = ArtifactKind.FILE
    stages: FrozenSet[GrowthStage]
    priority: Priority = Priority.LOW
    stage_priorities: Dict[GrowthStage, Priority] = Field(default_factory=dict)
    upload_guidelines: str = ""

    @field_validator("allowed_formats", mode="before")
    @classmethod
    def _normalize_formats(cls, value):
        if isinstance(value, str):
            value = [value]
        formats = []
        for item in value or ():
            text = str(item).strip().lower()
            if text and not text.startswith("."):
                text = f".{text}"
            if text:
                formats.append(text)
        if not formats:
            raise ValueError("allowed_formats must not be empty")
        return tuple(dict.fromkeys(formats))

    @field_validator("stages")
    @classmethod
    def _require_stages(cls, value: FrozenSet[GrowthStage]) -> FrozenSet[GrowthStage]:
        if not value:
            raise ValueError("stages must not be empty")
        return value

    def applies_to(self, stage: GrowthStage | None) -> bool:
        """Return True when the artifact is visible for ``stage`` (absent stage shows all)."""
        return stage is None or stage in self.stages

    def priority_for(self, stage: GrowthStage | None = None) -> Priority:
        """Return the stage-specific priority, falling back to the default."""
        if stage is not None and stage in self.stage_priorities:
            return self.stage_priorities[stage]
        return self.priority

    def formats_label(self) -> str:
        return ", ".join(self.allowed_formats)


class Category(CatalogBaseModel):
    """A themed grouping of related artifacts."""

    id: str
    name: str
    description: str = ""
    artifacts: Mapping[str, Artifact] = Field(default_factory=_empty_mapping)

    @field_validator("artifacts")
    @classmethod
    def _freeze_artifacts(cls, value: Mapping[str, Artifact]) -> Mapping[str, Artifact]:
        return _frozen_mapping(value)

    @field_serializer("artifacts")
    def _dump_artifacts(self, value: Mapping[str, Artifact]) -> Dict[str, Artifact]:
        return dict(value)

    def get(self, artifact_id: str) -> Artifact:
        """Return an artifact by id.

        Raises:
            UnknownArtifactError: If the artifact does not belong to this category.
        """
        try:
            return self.artifacts[artifact_id]
        except KeyError:
            raise UnknownArtifactError(
                f"Invalid artifact type: {artifact_id!r} is not part of {self.id}"
            ) from None

    def with_artifacts(self, artifacts: Mapping[str, Artifact]) -> "Category":
        return self.model_copy(update={"artifacts": _frozen_mapping(artifacts)})


class ArtifactCatalog(CatalogBaseModel):
    """Immutable, ordered registry of every known category and artifact.

    Attributes:
        version: Catalog revision label.
        categories: Ordered mapping of category identifiers to categories.
    """

    version: str = "unversioned"
    categories: Mapping[str, Category] = Field(default_factory=_empty_mapping)

    @field_validator("categories")
    @classmethod
    def _freeze_categories(cls, value: Mapping[str, Category]) -> Mapping[str, Category]:
        return _frozen_mapping(value)

    @field_serializer("categories")
    def _dump_categories(self, value: Mapping[str, Category]) -> Dict[str, Category]:
        return dict(value)

    @model_validator(mode="after")
    def _check_unique_artifacts(self) -> "ArtifactCatalog":
        seen: Dict[str, str] = {}
        for category_id, category in self.categories.items():
            for artifact_id in category.artifacts:
                owner = seen.get(artifact_id)
                if owner is not None:
                    raise ValueError(
                        f"Artifact {artifact_id!r} is declared in both {owner} and {category_id}"
                    )
                seen[artifact_id] = category_id
        return self

    def __contains__(self, category_id: object) -> bool:
        return category_id in self.categories

    def with_categories(self, categories: Mapping[str, Category]) -> "ArtifactCatalog":
        return self.model_copy(update={"categories": _frozen_mapping(categories)})

    def category(self, category_id: str) -> Category:
        """Return a category by id.

        Raises:
            UnknownCategoryError: If the category is not registered.
        """
        try:
            return self.categories[category_id]
        except KeyError:
            raise UnknownCategoryError(f"Invalid category: {category_id!r}") from None

    def artifact(self, category_id: str, artifact_id: str) -> Artifact:
        """Return an artifact scoped to its category."""
        return self.category(category_id).get(artifact_id)

    def find_artifact(self, artifact_id: str) -> Optional[Tuple[Category, Artifact]]:
        """Locate an artifact anywhere in the catalog."""
        for category in self.categories.values():
            artifact = category.artifacts.get(artifact_id)
            if artifact is not None:
                return category, artifact
        return None


__all__ = [
    "Artifact",
    "ArtifactCatalog",
    "ArtifactKind",
    "CatalogError",
    "Category",
    "GrowthStage",
    "PRIORITY_RANK",
    "Priority",
    "priority_rank",
]
