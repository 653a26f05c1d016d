"""Validation package."""

from pocketledger.validation.validator import (
    EntityValidationError,
    EntityValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "EntityValidationError",
    "EntityValidator",
    "ValidationIssue",
    "ValidationResult",
]
