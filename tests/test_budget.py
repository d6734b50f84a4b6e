"""Tests for the budget classifier."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from moneynote.ledger import budget_state, evaluate_budget
from moneynote.models.transaction import BudgetSettings, BudgetState


class TestBudgetState:
    """Tests for budget_state."""

    @pytest.mark.parametrize("expense,expected", [
        (0, BudgetState.NORMAL),
        (79, BudgetState.NORMAL),
        (80, BudgetState.WARNING),
        (99, BudgetState.WARNING),
        (100, BudgetState.DANGER),
        (150, BudgetState.DANGER),
    ])
    def test_default_thresholds(self, expense, expected):
        assert budget_state(expense, 100, 80, 100).state == expected

    def test_zero_limit_is_unconfigured(self):
        status = budget_state(50, 0, 80, 100)
        assert status.state == BudgetState.UNCONFIGURED
        assert not status.is_configured
        assert status.usage_percent == 0.0

    def test_negative_limit_is_unconfigured(self):
        assert budget_state(50, -10).state == BudgetState.UNCONFIGURED

    def test_custom_thresholds(self):
        assert budget_state(60, 100, 60, 90).state == BudgetState.WARNING
        assert budget_state(89, 100, 60, 90).state == BudgetState.WARNING
        assert budget_state(90, 100, 60, 90).state == BudgetState.DANGER

    def test_usage_and_overspend(self):
        status = budget_state(Decimal("625000"), Decimal("500000"))
        assert status.usage_percent == pytest.approx(125.0)
        assert status.overspend == Decimal("125000")
        assert status.is_over_budget
        assert status.progress_percent == 100.0

    def test_under_budget_is_not_overspent(self):
        status = budget_state(400, 500)
        assert status.overspend == Decimal(-100)
        assert not status.is_over_budget

    def test_exactly_at_limit_is_danger_not_overspent(self):
        status = budget_state(500, 500)
        assert status.state == BudgetState.DANGER
        assert not status.is_over_budget


class TestEvaluateBudget:
    """Tests for evaluate_budget with stored settings."""

    TODAY = date(2024, 6, 15)

    def test_no_settings(self):
        assert evaluate_budget(1000, None, self.TODAY).state == BudgetState.UNCONFIGURED

    def test_current_month_settings(self):
        settings = BudgetSettings(
            limit_amount=Decimal(1000),
            warning_percent=70,
            danger_percent=90,
            updated_at=datetime(2024, 6, 1, 10, 0),
        )
        status = evaluate_budget(Decimal(750), settings, self.TODAY)
        assert status.state == BudgetState.WARNING
        assert status.warning_percent == 70
        assert status.danger_percent == 90

    def test_stale_settings_are_unconfigured(self):
        settings = BudgetSettings(
            limit_amount=Decimal(1000),
            updated_at=datetime(2024, 5, 31, 23, 59),
        )
        assert evaluate_budget(Decimal(5000), settings, self.TODAY).state == BudgetState.UNCONFIGURED

    def test_disabled_budget(self):
        settings = BudgetSettings(
            limit_amount=Decimal(1000),
            enabled=False,
            updated_at=datetime(2024, 6, 1),
        )
        status = evaluate_budget(Decimal(5000), settings, self.TODAY)
        assert status.state == BudgetState.UNCONFIGURED
        assert status.enabled is False
        # Limit kept so re-enabling shows the same budget
        assert status.limit_amount == Decimal(1000)
        assert not status.is_over_budget
