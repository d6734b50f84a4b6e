"""
Budget Classifier

Classifies a month's spending against the user's limit into one of
the display states: UNCONFIGURED, NORMAL, WARNING, DANGER.

This is a classification function, not a persisted state machine.
The UI calls it again whenever the expense total or the settings change.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union

from moneynote.models.transaction import BudgetSettings, BudgetState, BudgetStatus

Number = Union[Decimal, int, float]


def budget_state(
    monthly_expense: Number,
    limit: Number,
    warning_percent: int = 80,
    danger_percent: int = 100,
) -> BudgetStatus:
    """
    Classify spending against a limit.

    Both thresholds are inclusive: usage equal to the danger percent
    is DANGER, usage equal to the warning percent is WARNING.
    A limit of zero (or less) means no budget and yields UNCONFIGURED.
    """
    expense = Decimal(str(monthly_expense))
    limit_amount = Decimal(str(limit))

    if limit_amount <= 0:
        return BudgetStatus(
            state=BudgetState.UNCONFIGURED,
            expense=expense,
            limit_amount=Decimal(0),
            usage_percent=0.0,
            warning_percent=warning_percent,
            danger_percent=danger_percent,
            overspend=Decimal(0),
        )

    usage = float(expense / limit_amount * 100)

    if usage >= danger_percent:
        state = BudgetState.DANGER
    elif usage >= warning_percent:
        state = BudgetState.WARNING
    else:
        state = BudgetState.NORMAL

    return BudgetStatus(
        state=state,
        expense=expense,
        limit_amount=limit_amount,
        usage_percent=usage,
        warning_percent=warning_percent,
        danger_percent=danger_percent,
        overspend=expense - limit_amount,
    )


def evaluate_budget(
    monthly_expense: Number,
    settings: Optional[BudgetSettings],
    today: date,
) -> BudgetStatus:
    """
    Classify spending against a stored budget record.

    Missing records and records from another month are treated as
    no budget. A disabled budget is also UNCONFIGURED, with
    enabled=False so the UI can show the toggle in its off position.
    """
    if settings is None or settings.is_stale(today):
        return budget_state(monthly_expense, 0)

    if not settings.enabled:
        status = budget_state(
            monthly_expense,
            0,
            settings.warning_percent,
            settings.danger_percent,
        )
        return status.model_copy(update={
            "enabled": False,
            "limit_amount": settings.limit_amount,
        })

    return budget_state(
        monthly_expense,
        settings.limit_amount,
        settings.warning_percent,
        settings.danger_percent,
    )
