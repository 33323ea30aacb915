"""Command line interface for proofvault."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from proofvault.catalog import (
    ArtifactCatalog,
    CatalogError,
    GrowthStage,
    artifacts_for_stage,
    default_catalog,
    load_catalog,
)
from proofvault.completion import CompletionTracker, UploadedArtifacts
from proofvault.config import ConfigError, ConfigManager, VaultConfig, resolve_with_precedence
from proofvault.session import VaultSession
from proofvault.uploads import DirectoryTransfer, EntryStatus, QueueEntry
from proofvault.validation import FileCandidate, FileValidator, format_file_size

console = Console()

_STATUS_STYLES = {
    EntryStatus.PENDING: "yellow",
    EntryStatus.UPLOADING: "cyan",
    EntryStatus.COMPLETED: "green",
    EntryStatus.FAILED: "red",
}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and stop the command.

    Raises:
        SystemExit: In JSON mode, after printing the error payload.
        click.ClickException: Otherwise.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if details:
        for line in details if isinstance(details, list) else [details]:
            console.print(f"[red]  - {line}[/red]")
    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print ``message`` unless quiet or summary-only settings suppress it."""
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, target: str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(json_output: bool = False) -> VaultConfig:
    try:
        config = ConfigManager().load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        raise  # pragma: no cover - _handle_cli_error always raises
    _configure_logging(config.logging.level)
    return config


def _load_catalog(config: VaultConfig, json_output: bool = False) -> ArtifactCatalog:
    try:
        if config.catalog.path:
            return load_catalog(Path(config.catalog.path))
        return default_catalog()
    except CatalogError as exc:
        _handle_cli_error(str(exc), code="catalog_error", json_output=json_output, original=exc)
        raise  # pragma: no cover - _handle_cli_error always raises


def _resolve_stage(option: Optional[str], config: VaultConfig, json_output: bool) -> Optional[GrowthStage]:
    label = option if option is not None else config.venture.stage
    if label is None:
        return None
    stage = GrowthStage.parse(label)
    if stage is None:
        allowed = ", ".join(item.value for item in GrowthStage)
        _handle_cli_error(
            f"Unknown growth stage '{label}'. Expected one of: {allowed}.",
            code="invalid_stage",
            json_output=json_output,
        )
    return stage


def _expand_paths(paths: Iterable[Path]) -> List[Path]:
    files: List[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(child for child in path.rglob("*") if child.is_file()))
        else:
            files.append(path)
    return files


def _entry_payload(entry: QueueEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "file": entry.file.name,
        "category": entry.category_id,
        "artifact": entry.artifact_id,
        "status": entry.status.value,
        "progress": entry.progress,
        "error": entry.error,
    }


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for segment in path[:-1]:
        existing = node.setdefault(segment, {})
        if not isinstance(existing, dict):
            raise ConfigError(f"Cannot assign into '{segment}' because it is not a mapping.")
        node = existing
    node[path[-1]] = value


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="proofvault")
def cli() -> None:
    """Proofvault checks evidence files against the artifact catalog and uploads them."""


@cli.command("catalog")
@click.option("--stage", type=str, help="Only show artifacts for this growth stage.")
@click.option("--json", "json_output", is_flag=True, help="Emit the catalog as JSON.")
def catalog_command(stage: Optional[str], json_output: bool) -> None:
    """List categories and their artifacts."""
    config = _load_config(json_output)
    catalog = _load_catalog(config, json_output)
    resolved = _resolve_stage(stage, config, json_output)
    projected = artifacts_for_stage(catalog, resolved)

    if json_output:
        console.print_json(
            data={
                "version": catalog.version,
                "stage": resolved.value if resolved else None,
                "categories": {
                    category_id: [
                        artifact.model_dump(mode="json", include={"id", "name", "allowed_formats", "max_size_bytes"})
                        for artifact in artifacts
                    ]
                    for category_id, artifacts in projected.items()
                },
            }
        )
        return

    for category_id, artifacts in projected.items():
        category = catalog.category(category_id)
        table = Table(title=f"{category.name} ({category_id})", show_lines=False)
        table.add_column("Artifact")
        table.add_column("Formats")
        table.add_column("Max size", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Priority")
        for artifact in artifacts:
            table.add_row(
                artifact.id,
                artifact.formats_label(),
                format_file_size(artifact.max_size_bytes),
                str(artifact.score_contribution),
                artifact.priority_for(resolved).value,
            )
        console.print(table)


@cli.command()
@click.argument("category_id")
@click.option("--stage", type=str, help="Growth stage of the venture.")
@click.option("--uploaded", "uploaded_ids", multiple=True, help="Artifact id already uploaded.")
@click.option("--json", "json_output", is_flag=True, help="Emit progress as JSON.")
def remaining(
    category_id: str, stage: Optional[str], uploaded_ids: tuple[str, ...], json_output: bool
) -> None:
    """Show artifacts still needed in CATEGORY_ID, highest priority first."""
    config = _load_config(json_output)
    catalog = _load_catalog(config, json_output)
    resolved = _resolve_stage(stage, config, json_output)
    tracker = CompletionTracker(catalog, resolved, UploadedArtifacts.of(uploaded_ids))

    try:
        progress = tracker.progress(category_id)
        artifacts = tracker.remaining_artifacts(category_id)
    except CatalogError as exc:
        _handle_cli_error(str(exc), code="unknown_category", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=progress.model_dump(mode="json"))
        return

    if progress.not_applicable:
        console.print(f"[yellow]No artifacts in {progress.name} apply to this stage.[/yellow]")
    elif progress.complete:
        console.print(f"[green]{progress.name} is complete.[/green]")
    else:
        table = Table(title=f"Remaining in {progress.name}")
        table.add_column("Priority")
        table.add_column("Artifact")
        table.add_column("Name")
        table.add_column("Formats")
        table.add_column("Max size", justify="right")
        for artifact in artifacts:
            table.add_row(
                artifact.priority_for(resolved).value,
                artifact.id,
                artifact.name,
                artifact.formats_label(),
                format_file_size(artifact.max_size_bytes),
            )
        console.print(table)
    console.print(
        _format_summary_line(
            "Remaining",
            category_id,
            {"required": progress.required, "uploaded": progress.uploaded, "remaining": len(progress.remaining)},
        )
    )


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--category", "category_id", required=True, help="Destination category id.")
@click.option("--artifact", "artifact_id", help="Artifact id; omit to match against the whole category.")
@click.option("--json", "json_output", is_flag=True, help="Emit validation results as JSON.")
def validate(files: tuple[Path, ...], category_id: str, artifact_id: Optional[str], json_output: bool) -> None:
    """Check FILES against an artifact's format and size rules."""
    config = _load_config(json_output)
    validator = FileValidator(_load_catalog(config, json_output))

    candidates = [FileCandidate.from_path(path) for path in files]
    results = validator.validate_many(candidates, category_id, artifact_id)
    invalid = [name for name, result in results.items() if not result.valid]

    if json_output:
        console.print_json(
            data={
                "results": [
                    {
                        "file": name,
                        "valid": result.valid,
                        "errors": result.errors,
                        "artifact": result.matched_artifact.id if result.matched_artifact else None,
                    }
                    for name, result in results.items()
                ]
            }
        )
        if invalid:
            raise SystemExit(1)
        return

    for name, result in results.items():
        if result.valid:
            matched = result.matched_artifact.id if result.matched_artifact else "-"
            console.print(f"[green]OK[/green] {name} -> {matched}")
        else:
            console.print(f"[red]FAIL[/red] {name}")
            for error in result.errors:
                console.print(f"  - {error}")
    if invalid:
        raise click.ClickException(f"{len(invalid)} file(s) failed validation.")


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--category", "category_id", required=True, help="Destination category id.")
@click.option("--artifact", "artifact_id", help="Artifact the files satisfy.")
@click.option("--description", default="", help="Description attached to every file.")
@click.option("--stage", type=str, help="Growth stage of the venture.")
@click.option("--uploaded", "uploaded_ids", multiple=True, help="Artifact id already uploaded.")
@click.option(
    "--destination",
    type=click.Path(file_okay=False, path_type=Path),
    help="Vault directory receiving the files.",
)
@click.option("--folder", "folder_mode", is_flag=True, help="Treat PATHS as a folder submission.")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Skip the confirmation prompt.")
@click.option("--json", "json_output", is_flag=True, help="Emit the queue as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
def upload(
    paths: tuple[Path, ...],
    category_id: str,
    artifact_id: Optional[str],
    description: str,
    stage: Optional[str],
    uploaded_ids: tuple[str, ...],
    destination: Optional[Path],
    folder_mode: bool,
    assume_yes: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Validate PATHS and upload them into the vault one at a time."""
    config = _load_config(json_output)
    catalog = _load_catalog(config, json_output)
    resolved = _resolve_stage(stage, config, json_output)
    quiet = quiet or config.cli.quiet_default
    summary_only = summary_mode or config.cli.summary_default

    session = VaultSession(
        catalog, stage=resolved, uploaded=UploadedArtifacts.of(uploaded_ids), config=config
    )
    session.select(category_id, artifact_id, description)
    gate = session.gate()
    if gate.blocked:
        _handle_cli_error(
            "Upload requirements not met.",
            code="requirements_not_met",
            json_output=json_output,
            details=gate.reasons,
        )

    def _consent(prompt: str) -> bool:
        return assume_yes or click.confirm(prompt, default=True)

    if not session.open_picker(_consent, folder_mode=folder_mode):
        _emit_message("[yellow]Upload cancelled.[/yellow]", mode="warning", quiet=quiet, summary_only=summary_only)
        return

    candidates = [FileCandidate.from_path(path) for path in _expand_paths(paths)]
    report = session.submit(candidates, folder_mode=folder_mode)
    if not report.enqueued:
        _handle_cli_error(
            "No files passed validation.",
            code="validation_failed",
            json_output=json_output,
            details=[f"{name}: {'; '.join(errors)}" for name, errors in report.file_errors.items()],
        )

    target_root = (destination or Path(config.uploads.destination)).expanduser()
    manager = session.manager
    manager.process(
        DirectoryTransfer(target_root), create_missing_folders=config.uploads.create_missing_folders
    )
    queue = manager.queue

    if json_output:
        console.print_json(
            data={
                "entries": [_entry_payload(entry) for entry in queue.entries],
                "rejected": report.file_errors,
                "precondition_error": queue.precondition_error,
            }
        )
        if queue.precondition_error:
            raise SystemExit(1)
        return

    if queue.precondition_error:
        _handle_cli_error(queue.precondition_error, code="folder_creation_failed", json_output=False)

    for name, errors in report.file_errors.items():
        _emit_message(
            f"[red]Rejected {name}: {'; '.join(errors)}[/red]",
            mode="error",
            quiet=quiet,
            summary_only=summary_only,
        )
    for entry in queue.entries:
        style = _STATUS_STYLES[entry.status]
        suffix = f" ({entry.error})" if entry.error else ""
        _emit_message(
            f"[{style}]{entry.status.value:>9}[/{style}] {entry.file.name}{suffix}",
            mode="error" if entry.status is EntryStatus.FAILED else "detail",
            quiet=quiet,
            summary_only=summary_only,
        )
    _emit_message(
        _format_summary_line(
            "Upload",
            str(target_root / category_id),
            {
                "completed": len(manager.completed_entries()),
                "failed": len(manager.failed_entries()),
                "rejected": len(report.file_errors),
            },
        ),
        mode="summary",
        quiet=quiet,
        summary_only=summary_only,
    )


@cli.group()
def config() -> None:
    """Inspect and change proofvault configuration."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration."""
    manager = ConfigManager()
    try:
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal assigned to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a value for a dotted KEY such as ``venture.stage``."""
    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text().splitlines()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must be a dotted path such as 'venture.stage'.")
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=VaultConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    diff = list(
        difflib.unified_diff(
            before,
            manager.read_text().splitlines(),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    changed = [line for line in diff if line.startswith(("+", "-")) and "Last updated" not in line]
    if len(changed) <= 2:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:  # pragma: no cover - console script entry point
    cli()


__all__ = ["cli", "main"]
