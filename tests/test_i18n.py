"""Tests for the Localizer."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from moneynote.i18n import CATEGORY_LABELS, TRANSLATIONS, Language, Localizer
from moneynote.ledger import budget_state, evaluate_budget
from moneynote.models.transaction import BudgetSettings, BudgetState, BudgetStatus, Category


class TestTranslations:
    """Tests for the string tables."""

    def test_every_language_has_every_category(self):
        for language in Language:
            assert set(CATEGORY_LABELS[language]) == set(Category)

    def test_burmese_covers_english_keys(self):
        missing = set(TRANSLATIONS[Language.EN]) - set(TRANSLATIONS[Language.MY])
        assert missing == set()

    def test_text(self):
        assert Localizer(Language.MY).text("income") == "ဝင်ငွေ"
        assert Localizer("en").text("income") == "Income"

    def test_unknown_key_falls_back_to_key(self):
        assert Localizer("ja").text("no_such_key") == "no_such_key"

    def test_placeholders(self):
        assert "85%" in Localizer("en").text("warning_zone", percent=85)


class TestLocalizer:
    """Tests for formatting helpers."""

    def test_category_label(self):
        t = Localizer(Language.MY)
        assert t.category_label(Category.FOOD) == "အစားအသောက်"
        assert Localizer("en").category_label("bills") == "Bills/Internet"

    def test_missing_category_is_general(self):
        assert Localizer("en").category_label(None) == "General"

    @pytest.mark.parametrize("language,expected", [
        ("my", "2024 ဇွန်လ"),
        ("en", "June 2024"),
        ("ja", "2024年6月"),
    ])
    def test_month_title(self, language, expected):
        assert Localizer(language).month_title("2024-06") == expected

    def test_format_amount(self):
        t = Localizer("en")
        assert t.format_amount(Decimal("4500")) == "4,500"
        assert t.format_amount(Decimal("1234567.00")) == "1,234,567"
        assert t.format_amount(Decimal("2.5")) == "2.50"

    def test_format_money_uses_currency_label(self):
        assert Localizer("my").format_money(Decimal("290500")) == "290,500 ကျပ်"
        assert Localizer("en", currency_label="MMK").format_money(100) == "100 MMK"


class TestBudgetMessage:
    """Tests for budget_message."""

    @pytest.fixture
    def t(self):
        return Localizer("en", currency_label="MMK")

    def test_unconfigured(self, t):
        assert t.budget_message(budget_state(100, 0)) == "Set Monthly Budget"

    def test_normal(self, t):
        assert t.budget_message(budget_state(10, 100)) == "Spending is within normal limits."

    def test_warning_mentions_threshold(self, t):
        message = t.budget_message(budget_state(85, 100, 80, 100))
        assert "80%" in message

    def test_danger_at_limit(self, t):
        assert t.budget_message(budget_state(100, 100)) == "Critical Level Reached"

    def test_over_budget_shows_amount(self, t):
        message = t.budget_message(budget_state(Decimal(125000), Decimal(100000)))
        assert message == "Overspent by 25,000 MMK"

    def test_unconfigured_with_overspend_still_prompts(self, t):
        status = BudgetStatus(state=BudgetState.UNCONFIGURED, overspend=Decimal(10))
        assert t.budget_message(status) == "Set Monthly Budget"

    def test_disabled_budget_is_paused(self, t):
        settings = BudgetSettings(
            limit_amount=Decimal(100000),
            enabled=False,
            updated_at=datetime(2024, 6, 1),
        )
        status = evaluate_budget(Decimal(125000), settings, date(2024, 6, 15))
        assert t.budget_message(status) == "Budget is paused"
        assert Localizer("my").budget_message(status) != Localizer("my").text("set_budget")
