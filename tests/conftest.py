"""Shared fixtures for MoneyNote tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from moneynote.config import AppSettings
from moneynote.models.transaction import Transaction, TransactionType


def make_tx(
    label: str,
    amount,
    day: str,
    tx_type: TransactionType = TransactionType.EXPENSE,
    **kwargs,
) -> Transaction:
    return Transaction(
        label=label,
        amount=Decimal(str(amount)),
        date=day,
        type=tx_type,
        **kwargs,
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        default_language="en",
        default_warning_percent=80,
        default_danger_percent=100,
        history_months=12,
        future_date_tolerance_days=1,
        max_transaction_amount=100_000_000,
    )


@pytest.fixture
def june_ledger() -> list[Transaction]:
    """Breakfast and shopping on June 1st, salary on June 5th."""
    return [
        make_tx("Breakfast", 4500, "2024-06-01", created_at=datetime(2024, 6, 1, 8, 0)),
        make_tx("Shopping", 5000, "2024-06-01", created_at=datetime(2024, 6, 1, 18, 30)),
        make_tx(
            "Salary", 300000, "2024-06-05", TransactionType.INCOME,
            created_at=datetime(2024, 6, 5, 9, 0),
        ),
    ]
