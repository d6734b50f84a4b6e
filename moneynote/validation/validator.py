"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Format validation (amount > 0, YYYY-MM-DD dates)
- This catches empty form fields and malformed voice-parser output

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- Category / type consistency
- Read-only past months
- This catches logically impossible or suspicious data

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the caller decides whether to save.
The ledger aggregator trusts whatever passes this gate.
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from moneynote.config import AppSettings, get_settings
from moneynote.ledger.aggregator import current_period_key, local_today, period_key_of
from moneynote.models.transaction import (
    DATE_PATTERN,
    Category,
    Transaction,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)


class TransactionValidator:
    """
    Validates transaction drafts from the manual form or the voice parser.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter how much was spent or received",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Use the type field for income or expense, not a negative amount",
            ))

        if not draft.label:
            issues.append(ValidationIssue(
                field="label",
                issue_type="missing",
                message="Label is required",
                severity="error",
                suggested_fix="Describe what the money was for",
            ))

        if not draft.date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif not re.match(DATE_PATTERN, draft.date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date ({draft.date}) must be in YYYY-MM-DD format",
                severity="error",
            ))
        else:
            try:
                date.fromisoformat(draft.date)
            except ValueError:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date ({draft.date}) is not a calendar date",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        # Future date check (with tolerance)
        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if date.fromisoformat(draft.date) > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({draft.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        # Absurd amount check
        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if draft.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.category is not None and draft.category not in Category.for_type(draft.type):
            issues.append(ValidationIssue(
                field="category",
                issue_type="inconsistent",
                message=(
                    f"Category '{draft.category.value}' is not usually "
                    f"used for {draft.type.value.lower()}"
                ),
                severity="warning",
                suggested_fix="Pick a category matching the transaction type",
            ))

        # Past months are read-only
        if draft.transaction_id and draft.original_date:
            if period_key_of(draft.original_date) != current_period_key(today):
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="read_only",
                    message="Transactions from past months cannot be edited",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The proposed transaction
            today: The user's local day (defaults to the system's)

        Returns:
            ValidationResult with all issues found
        """
        today = today or local_today()
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft, today)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            draft_id=draft.draft_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def validate_deletion(
        self,
        transaction: Transaction,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Deleting is only allowed for records in the current month.
        """
        issues = []
        if transaction.period_key != current_period_key(today or local_today()):
            issues.append(ValidationIssue(
                field="date",
                issue_type="read_only",
                message="Transactions from past months cannot be deleted",
                severity="error",
            ))

        return ValidationResult(
            draft_id=uuid4(),
            schema_valid=True,
            semantic_valid=not issues,
            is_valid=not issues,
            issues=issues,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)


def validate_budget_input(
    limit_amount: Optional[Decimal],
    warning_percent: int,
    danger_percent: int,
) -> list[ValidationIssue]:
    """
    Check budget form input before building BudgetSettings.

    Returns an empty list when the input is acceptable.
    """
    issues = []

    if limit_amount is None or limit_amount <= 0:
        issues.append(ValidationIssue(
            field="limit_amount",
            issue_type="invalid_value",
            message="Budget limit must be greater than zero",
            severity="error",
            suggested_fix="Remove the budget instead of setting it to zero",
        ))

    if not 50 <= warning_percent <= 95:
        issues.append(ValidationIssue(
            field="warning_percent",
            issue_type="out_of_range",
            message="Warning threshold must be between 50% and 95%",
            severity="error",
        ))

    if not 55 <= danger_percent <= 100:
        issues.append(ValidationIssue(
            field="danger_percent",
            issue_type="out_of_range",
            message="Danger threshold must be between 55% and 100%",
            severity="error",
        ))
    elif danger_percent < warning_percent + 5:
        issues.append(ValidationIssue(
            field="danger_percent",
            issue_type="inconsistent",
            message="Danger threshold must be at least 5% above the warning threshold",
            severity="error",
        ))

    return issues
