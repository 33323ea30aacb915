"""Completion tracking for vault categories."""

from .models import CategoryProgress, UploadedArtifacts
from .tracker import CompletionTracker, sort_by_priority

__all__ = ["CategoryProgress", "CompletionTracker", "UploadedArtifacts", "sort_by_priority"]
