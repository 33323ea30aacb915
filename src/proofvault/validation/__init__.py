"""File validation and the pre-submission gate."""

from .gate import DEFAULT_MAX_DESCRIPTION_LENGTH, check_requirements, upload_gate_status
from .models import FileCandidate, GateStatus, Selection, ValidationResult
from .validator import FileValidator, format_file_size

__all__ = [
    "DEFAULT_MAX_DESCRIPTION_LENGTH",
    "FileCandidate",
    "FileValidator",
    "GateStatus",
    "Selection",
    "ValidationResult",
    "check_requirements",
    "format_file_size",
    "upload_gate_status",
]
