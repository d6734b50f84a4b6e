"""Validation package."""

from moneynote.validation.validator import TransactionValidator, validate_budget_input

__all__ = ["TransactionValidator", "validate_budget_input"]
