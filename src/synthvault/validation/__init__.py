"""Validation and sanity checks for the ledger."""

from .sanity_checks import LedgerChecker, ValidationWarning, validate_ledger

__all__ = [
    "LedgerChecker",
    "ValidationWarning",
    "validate_ledger"
]
