"""Vault session orchestration."""

from .service import ConsentGate, SubmissionReport, VaultSession

__all__ = ["ConsentGate", "SubmissionReport", "VaultSession"]
