"""
Tests for MoneyNote

Test strategy:
1. Unit tests for individual components (models, aggregator, validator)
2. Integration tests for flows (with in-memory storage and a fake model)
3. No real API calls in tests
"""

import json
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from moneynote.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from moneynote.models.transaction import (
    BudgetSettings,
    BudgetState,
    BudgetStatus,
    Category,
    DailyPoint,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    SortDirection,
    SortKey,
    SortState,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


class TestTransactionModels:
    """Tests for transaction-related Pydantic models."""

    def test_transaction_creation(self):
        tx = Transaction(
            amount=Decimal("4500"),
            label="Breakfast",
            date="2024-06-01",
            type=TransactionType.EXPENSE,
        )
        assert tx.amount == Decimal("4500")
        assert tx.period_key == "2024-06"
        assert tx.day == "01"
        assert tx.id
        assert tx.created_at is None

    def test_transaction_ids_are_unique(self):
        a = Transaction(amount=1, label="a", date="2024-06-01", type=TransactionType.EXPENSE)
        b = Transaction(amount=1, label="a", date="2024-06-01", type=TransactionType.EXPENSE)
        assert a.id != b.id

    def test_transaction_strips_whitespace(self):
        tx = Transaction(amount=1, label="  Tea  ", date="2024-06-01", type=TransactionType.EXPENSE)
        assert tx.label == "Tea"

    def test_transaction_rejects_zero_amount(self):
        with pytest.raises(ValueError):
            Transaction(amount=0, label="Tea", date="2024-06-01", type=TransactionType.EXPENSE)

    def test_transaction_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            Transaction(amount=-100, label="Tea", date="2024-06-01", type=TransactionType.EXPENSE)

    def test_transaction_rejects_empty_label(self):
        with pytest.raises(ValueError):
            Transaction(amount=100, label="   ", date="2024-06-01", type=TransactionType.EXPENSE)

    def test_transaction_rejects_bad_date_format(self):
        with pytest.raises(ValueError):
            Transaction(amount=100, label="Tea", date="01/06/2024", type=TransactionType.EXPENSE)

    def test_transaction_rejects_impossible_date(self):
        with pytest.raises(ValueError):
            Transaction(amount=100, label="Tea", date="2024-02-30", type=TransactionType.EXPENSE)

    def test_transaction_accepts_leap_day(self):
        tx = Transaction(amount=100, label="Tea", date="2024-02-29", type=TransactionType.EXPENSE)
        assert tx.day == "29"

    def test_draft_allows_gaps(self):
        """Drafts hold whatever the form or the model produced."""
        draft = TransactionDraft()
        assert draft.amount is None
        assert draft.label is None
        assert draft.type == TransactionType.EXPENSE

    def test_daily_point_day_format(self):
        assert DailyPoint(day="07").day == "07"
        with pytest.raises(ValueError):
            DailyPoint(day="7")


class TestBudgetModels:
    """Tests for budget settings and status."""

    def test_budget_defaults(self):
        settings = BudgetSettings(limit_amount=Decimal("500000"))
        assert settings.warning_percent == 80
        assert settings.danger_percent == 100
        assert settings.enabled is True

    def test_budget_rejects_zero_limit(self):
        with pytest.raises(ValueError):
            BudgetSettings(limit_amount=0)

    def test_budget_warning_bounds(self):
        with pytest.raises(ValueError):
            BudgetSettings(limit_amount=100, warning_percent=45)
        with pytest.raises(ValueError):
            BudgetSettings(limit_amount=100, warning_percent=96)

    def test_budget_danger_must_exceed_warning(self):
        with pytest.raises(ValueError):
            BudgetSettings(limit_amount=100, warning_percent=90, danger_percent=92)

    def test_budget_danger_five_above_warning_is_allowed(self):
        settings = BudgetSettings(limit_amount=100, warning_percent=90, danger_percent=95)
        assert settings.danger_percent == 95

    def test_budget_stale_in_other_month(self):
        settings = BudgetSettings(limit_amount=100, updated_at=datetime(2024, 5, 31, 23, 0))
        assert settings.is_stale(date(2024, 6, 1))
        assert not settings.is_stale(date(2024, 5, 1))

    def test_budget_stale_same_month_other_year(self):
        settings = BudgetSettings(limit_amount=100, updated_at=datetime(2023, 6, 10))
        assert settings.is_stale(date(2024, 6, 10))

    def test_budget_status_over_budget(self):
        status = BudgetStatus(
            state=BudgetState.DANGER,
            expense=Decimal(120),
            limit_amount=Decimal(100),
            usage_percent=120.0,
            overspend=Decimal(20),
        )
        assert status.is_configured
        assert status.is_over_budget
        assert status.progress_percent == 100.0

    def test_unconfigured_status_is_never_over_budget(self):
        status = BudgetStatus(state=BudgetState.UNCONFIGURED, overspend=Decimal(50))
        assert not status.is_configured
        assert not status.is_over_budget

    def test_sort_state_defaults_to_newest_first(self):
        state = SortState()
        assert state.key == SortKey.DATE
        assert state.direction == SortDirection.DESC


class TestCategories:
    """Tests for the closed category enumeration."""

    def test_general_offered_for_both_types(self):
        assert Category.GENERAL in EXPENSE_CATEGORIES
        assert Category.GENERAL in INCOME_CATEGORIES

    def test_for_type(self):
        assert Category.SALARY in Category.for_type(TransactionType.INCOME)
        assert Category.SALARY not in Category.for_type(TransactionType.EXPENSE)
        assert Category.FOOD in Category.for_type(TransactionType.EXPENSE)

    def test_every_category_is_offered(self):
        assert set(EXPENSE_CATEGORIES) | set(INCOME_CATEGORIES) == set(Category)

    def test_from_ai_label_accepts_prompt_names(self):
        assert Category.from_ai_label("Bills/Internet") == Category.BILLS
        assert Category.from_ai_label("Phone Bill") == Category.PHONE
        assert Category.from_ai_label("Business/Sales") == Category.SALES

    def test_from_ai_label_accepts_codes(self):
        assert Category.from_ai_label("food") == Category.FOOD
        assert Category.from_ai_label(" Transport ") == Category.TRANSPORT

    def test_from_ai_label_unknown_is_general(self):
        assert Category.from_ai_label("Lottery") == Category.GENERAL
        assert Category.from_ai_label(None) == Category.GENERAL
        assert Category.from_ai_label("") == Category.GENERAL


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.TRANSACTION_SAVED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            description="Budget set",
            user_id="mgmg",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "budget_updated"
        assert log_dict["user_id"] == "mgmg"

    def test_audit_event_to_sheets_row(self):
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Saved",
            details={"label": "မနက်စာ"},
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "transaction_saved"
        # Burmese text is kept readable in the sheet
        assert json.loads(row[9]) == {"label": "မနက်စာ"}
        assert "မနက်စာ" in row[9]

    def test_audit_event_builder_transaction_saved(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_saved(
            transaction_id="tx-1",
            user_id="mgmg",
            label="Breakfast",
            amount="4500",
            tx_type="EXPENSE",
            correlation_id=correlation_id,
        )
        assert event.entity_type == "transaction"
        assert event.entity_id == "tx-1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details["amount"] == "4500"

    def test_audit_event_builder_user_confirmed(self):
        draft_ids = [uuid4(), uuid4()]
        event = AuditEventBuilder.user_confirmed(
            draft_ids=draft_ids,
            user_id="mgmg",
            correlation_id=uuid4(),
        )
        assert event.event_type == AuditEventType.USER_CONFIRMED
        assert event.details["draft_ids"] == [str(d) for d in draft_ids]

    def test_audit_event_builder_save_failed_is_error(self):
        event = AuditEventBuilder.save_failed(
            operation="save_transaction",
            error_message="quota exceeded",
            user_id="mgmg",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "quota exceeded"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            draft_id=uuid4(),
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date is in the future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        result = ValidationResult(
            draft_id=uuid4(),
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Amount seems high",
                    severity="warning",
                ),
            ],
            warnings=["Amount seems high"],
        )
        assert not result.has_errors
        assert result.error_count == 0
        assert result.warnings == ["Amount seems high"]
