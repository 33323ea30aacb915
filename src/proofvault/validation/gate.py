"""Pre-submission gate shared by the submit action and UI enablement."""

from __future__ import annotations

from typing import List

from proofvault.catalog.errors import CatalogError
from proofvault.completion.tracker import CompletionTracker

from .models import GateStatus, Selection

DEFAULT_MAX_DESCRIPTION_LENGTH = 500


def check_requirements(
    selection: Selection,
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
) -> List[str]:
    """Return requirement errors for the metadata attached to a submission.

    These are resolved by user input, never by changing the file, so they are
    reported separately from file validation errors.
    """
    errors: List[str] = []
    if not selection.artifact_id:
        errors.append("Please select an artifact type")
    description = selection.description.strip()
    if not description:
        errors.append("Please provide a description")
    elif len(selection.description) > max_description_length:
        errors.append(f"Description must be {max_description_length} characters or less")
    return errors


def upload_gate_status(
    tracker: CompletionTracker,
    selection: Selection,
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
) -> GateStatus:
    """Decide whether a submission may proceed for the current selection.

    Args:
        tracker: Completion tracker for the venture's stage and uploaded set.
        selection: Selected category, artifact, and description.
        max_description_length: Longest accepted description.

    Returns:
        GateStatus: ``blocked`` with every reason that applies.
    """
    reasons: List[str] = []
    try:
        category = tracker.catalog.category(selection.category_id)
    except CatalogError:
        return GateStatus(blocked=True, reasons=["Invalid category"])

    if tracker.is_category_complete(category.id):
        if tracker.has_no_artifacts_required(category.id):
            reasons.append(f"No artifacts in {category.name} are required for this stage")
        else:
            reasons.append(f"All artifacts in {category.name} are already uploaded")
    elif selection.artifact_id:
        remaining = {artifact.id for artifact in tracker.remaining_artifacts(category.id)}
        if selection.artifact_id not in remaining:
            artifact = category.artifacts.get(selection.artifact_id)
            label = artifact.name if artifact is not None else selection.artifact_id
            reasons.append(f"{label} is not required for this stage or is already uploaded")

    reasons.extend(check_requirements(selection, max_description_length))
    return GateStatus(blocked=bool(reasons), reasons=reasons)


__all__ = ["DEFAULT_MAX_DESCRIPTION_LENGTH", "check_requirements", "upload_gate_status"]
