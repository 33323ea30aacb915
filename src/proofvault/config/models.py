"""Configuration models describing proofvault settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from proofvault.catalog.models import GrowthStage


class VaultBaseModel(BaseModel):
    """Shared configuration for proofvault Pydantic settings models."""

    model_config = ConfigDict(extra="forbid")


class CatalogSettings(VaultBaseModel):
    """Where the artifact catalog comes from.

    Attributes:
        path: Optional YAML catalog replacing the bundled one.
    """

    path: Optional[str] = None


class VentureSettings(VaultBaseModel):
    """Venture context used to filter the catalog.

    Attributes:
        stage: Growth stage label; unset shows every artifact.
    """

    stage: Optional[str] = None

    @field_validator("stage")
    @classmethod
    def _known_stage(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stage = GrowthStage.parse(value)
        if stage is None:
            allowed = ", ".join(item.value for item in GrowthStage)
            raise ValueError(f"stage must be one of: {allowed}")
        return stage.value


class ValidationSettings(VaultBaseModel):
    """Limits applied before files are queued.

    Attributes:
        max_description_length: Longest accepted submission description.
    """

    max_description_length: int = Field(default=500, gt=0)


class UploadSettings(VaultBaseModel):
    """Upload queue behavior.

    Attributes:
        destination: Directory receiving uploaded files, one folder per category.
        create_missing_folders: Whether missing category folders are created.
    """

    destination: str = "~/.proofvault/vault"
    create_missing_folders: bool = True


class LoggingSettings(VaultBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(VaultBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class VaultConfig(VaultBaseModel):
    """Top-level configuration for proofvault."""

    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    venture: VentureSettings = Field(default_factory=VentureSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    uploads: UploadSettings = Field(default_factory=UploadSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "CLIOptions",
    "CatalogSettings",
    "LoggingSettings",
    "UploadSettings",
    "ValidationSettings",
    "VaultBaseModel",
    "VaultConfig",
    "VentureSettings",
]
