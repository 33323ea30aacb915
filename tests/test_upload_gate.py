"""Tests for the pre-submission gate."""

from __future__ import annotations

from proofvault.catalog import ArtifactCatalog, catalog_from_mapping
from proofvault.completion import CompletionTracker, UploadedArtifacts
from proofvault.validation import Selection, check_requirements, upload_gate_status

MB = 1024 * 1024


def _catalog() -> ArtifactCatalog:
    def _artifact(name: str, stages: list[str]) -> dict[str, object]:
        return {"name": name, "allowed_formats": [".pdf"], "max_size_bytes": MB, "stages": stages}

    return catalog_from_mapping(
        {
            "categories": {
                "0_Overview": {
                    "name": "Overview",
                    "artifacts": {
                        "pitch_deck": _artifact("Pitch deck", ["Seed"]),
                        "one_pager": _artifact("One-pager", ["Seed"]),
                        "board_minutes": _artifact("Board minutes", ["Series A"]),
                    },
                },
                "6_Investor_Pack": {
                    "name": "Investor Pack",
                    "artifacts": {"data_room": _artifact("Data room", ["Series A"])},
                },
            }
        }
    )


def test_requirements_report_missing_metadata() -> None:
    errors = check_requirements(Selection(category_id="0_Overview", description="   "))

    assert errors == ["Please select an artifact type", "Please provide a description"]


def test_requirements_enforce_description_length() -> None:
    selection = Selection(category_id="0_Overview", artifact_id="pitch_deck", description="x" * 501)

    assert check_requirements(selection) == ["Description must be 500 characters or less"]
    assert check_requirements(selection, max_description_length=600) == []


def test_gate_open_for_remaining_artifact() -> None:
    tracker = CompletionTracker(_catalog(), "Seed", UploadedArtifacts.of(["one_pager"]))
    selection = Selection(category_id="0_Overview", artifact_id="pitch_deck", description="Q3 deck")

    status = upload_gate_status(tracker, selection)

    assert status.blocked is False
    assert status.reasons == []


def test_gate_blocks_unknown_category() -> None:
    tracker = CompletionTracker(_catalog(), "Seed")

    status = upload_gate_status(tracker, Selection(category_id="9_Missing"))

    assert status.blocked is True
    assert status.reasons == ["Invalid category"]


def test_gate_blocks_category_without_stage_artifacts() -> None:
    tracker = CompletionTracker(_catalog(), "Seed")
    selection = Selection(category_id="6_Investor_Pack", artifact_id="data_room", description="Room")

    status = upload_gate_status(tracker, selection)

    assert status.blocked is True
    assert status.reasons == ["No artifacts in Investor Pack are required for this stage"]


def test_gate_blocks_complete_category() -> None:
    uploaded = UploadedArtifacts.of(["pitch_deck", "one_pager"])
    tracker = CompletionTracker(_catalog(), "Seed", uploaded)
    selection = Selection(category_id="0_Overview", artifact_id="pitch_deck", description="Deck")

    status = upload_gate_status(tracker, selection)

    assert status.reasons == ["All artifacts in Overview are already uploaded"]


def test_gate_blocks_artifact_outside_remaining() -> None:
    tracker = CompletionTracker(_catalog(), "Seed", UploadedArtifacts.of(["pitch_deck"]))
    selection = Selection(category_id="0_Overview", artifact_id="board_minutes", description="Minutes")

    status = upload_gate_status(tracker, selection)

    assert status.blocked is True
    assert status.reasons == ["Board minutes is not required for this stage or is already uploaded"]


def test_gate_combines_stage_and_requirement_reasons() -> None:
    tracker = CompletionTracker(_catalog(), "Seed", UploadedArtifacts.of(["pitch_deck"]))
    selection = Selection(category_id="0_Overview", artifact_id="pitch_deck", description="")

    status = upload_gate_status(tracker, selection)

    assert status.reasons == [
        "Pitch deck is not required for this stage or is already uploaded",
        "Please provide a description",
    ]


def test_selection_cleared_keeps_category() -> None:
    selection = Selection(category_id="0_Overview", artifact_id="pitch_deck", description="Deck")

    cleared = selection.cleared()

    assert cleared.category_id == "0_Overview"
    assert cleared.artifact_id is None
    assert cleared.description == ""
