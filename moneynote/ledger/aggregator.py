"""
Ledger Aggregator

Turns a user's transactions plus a selected month into everything the
dashboard shows: monthly totals, the sorted and searched table, the
daily chart series and the history list.

DESIGN DECISION: Everything here is a pure function.
- No storage access, no settings, no logging
- Inputs are never mutated; new lists are returned
- Input is assumed valid (validation happens at the write boundary)

This keeps the aggregator trivially testable and lets the UI
re-run it on every change event without worrying about side effects.

DESIGN DECISION: Dates are compared as strings.
"YYYY-MM-DD" sorts lexically in calendar order and its "YYYY-MM"
prefix is the period key. No timezone conversion is ever applied.
"""

import calendar
from datetime import date, datetime
from decimal import Decimal
from functools import cmp_to_key
from typing import Iterable, Optional

from moneynote.models.transaction import (
    DailyPoint,
    HistorySummary,
    MonthlyStats,
    SortDirection,
    SortKey,
    SortState,
    Transaction,
    TransactionType,
)


# =============================================================================
# PERIOD HELPERS
# =============================================================================

def days_in_month(year: int, month: int) -> int:
    """Number of calendar days in a month (leap years included)."""
    return calendar.monthrange(year, month)[1]


def split_period_key(period_key: str) -> tuple[int, int]:
    """Split "YYYY-MM" into (year, month)."""
    year, month = period_key.split("-")
    return int(year), int(month)


def period_key_of(day: str) -> str:
    """Period key of a "YYYY-MM-DD" date string."""
    return day[:7]


def local_today() -> date:
    """The user's local calendar day (never UTC)."""
    return datetime.now().date()


def current_period_key(today: Optional[date] = None) -> str:
    today = today or local_today()
    return f"{today.year:04d}-{today.month:02d}"


def is_current_period(period_key: str, today: Optional[date] = None) -> bool:
    return period_key == current_period_key(today)


# =============================================================================
# MONTHLY TOTALS
# =============================================================================

def filter_by_period(
    transactions: Iterable[Transaction],
    period_key: str,
) -> list[Transaction]:
    """
    Transactions whose date falls in the given month.

    Plain prefix match on the date string, input order preserved.
    """
    return [tx for tx in transactions if tx.date.startswith(period_key)]


def _totals(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    income = Decimal(0)
    expense = Decimal(0)
    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return income, expense


def compute_monthly_stats(
    transactions: Iterable[Transaction],
    period_key: str,
) -> MonthlyStats:
    """
    Income, expense and net for one month.

    An empty month yields all zeros, never an error.
    """
    income, expense = _totals(filter_by_period(transactions, period_key))
    return MonthlyStats(income=income, expense=expense, net=income - expense)


# =============================================================================
# SORTING & SEARCH
# =============================================================================

def _compare(a, b) -> int:
    return (a > b) - (a < b)


def _compare_by_date(left: Transaction, right: Transaction) -> int:
    result = _compare(left.date, right.date)
    if result == 0:
        # Same day: records without an insertion time come first as a block,
        # the rest by insertion time
        left_has = left.created_at is not None
        right_has = right.created_at is not None
        result = _compare(left_has, right_has)
        if result == 0 and left_has:
            result = _compare(left.created_at, right.created_at)
    return result


def _compare_by_label(left: Transaction, right: Transaction) -> int:
    return _compare(left.label.lower(), right.label.lower())


def _compare_by_amount(left: Transaction, right: Transaction) -> int:
    return _compare(left.amount, right.amount)


_COMPARATORS = {
    SortKey.DATE: _compare_by_date,
    SortKey.LABEL: _compare_by_label,
    SortKey.AMOUNT: _compare_by_amount,
}


def sort_transactions(
    items: Iterable[Transaction],
    key: SortKey = SortKey.DATE,
    direction: SortDirection = SortDirection.DESC,
) -> list[Transaction]:
    """
    Sort transactions for the table view.

    Label sorts ignore case, amounts sort numerically and dates sort
    lexically with created_at as a tie-breaker. Items that still
    compare equal keep their input order in both directions.
    """
    compare = _COMPARATORS[SortKey(key)]
    if SortDirection(direction) == SortDirection.DESC:
        return sorted(items, key=cmp_to_key(lambda a, b: compare(b, a)))
    return sorted(items, key=cmp_to_key(compare))


def toggle_sort(current: SortState, key: SortKey) -> SortState:
    """
    Next sort state after the user clicks a column header.

    Clicking the active column flips its direction.
    Clicking another column sorts it ascending.
    """
    key = SortKey(key)
    if current.key == key:
        flipped = (
            SortDirection.ASC
            if current.direction == SortDirection.DESC
            else SortDirection.DESC
        )
        return SortState(key=key, direction=flipped)
    return SortState(key=key, direction=SortDirection.ASC)


def amount_text(amount: Decimal) -> str:
    """
    Plain string form of an amount, as a user would type it.

    Whole amounts drop their fractional part ("4500", not "4500.00").
    """
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def amount_from_input(value: float, original: Optional[Decimal] = None) -> Decimal:
    """
    Decimal amount for a value read from a numeric form field.

    Form widgets hand back floats. An unchanged value keeps the stored
    Decimal as is; anything else goes through its shortest repr so
    1234.5 becomes Decimal("1234.5"), not a binary expansion.
    """
    if original is not None and float(original) == value:
        return original
    return Decimal(repr(float(value)))


def search_filter(items: list[Transaction], query: str) -> list[Transaction]:
    """
    Keep transactions whose label contains the query (ignoring case)
    or whose amount contains it as a substring.

    An empty query returns the input list itself.
    """
    if not query:
        return items

    needle = query.lower()
    return [
        tx for tx in items
        if needle in tx.label.lower() or needle in amount_text(tx.amount)
    ]


# =============================================================================
# CHART & HISTORY
# =============================================================================

def build_daily_series(
    transactions: Iterable[Transaction],
    period_key: str,
) -> list[DailyPoint]:
    """
    Daily income and expense for every day of a month.

    The series always has one point per calendar day so the chart's
    x-axis never has gaps. Days without records are zero.
    """
    year, month = split_period_key(period_key)
    totals = {
        f"{day:02d}": [Decimal(0), Decimal(0)]
        for day in range(1, days_in_month(year, month) + 1)
    }

    for tx in filter_by_period(transactions, period_key):
        bucket = totals.get(tx.day)
        if bucket is None:
            continue
        if tx.type == TransactionType.INCOME:
            bucket[0] += tx.amount
        else:
            bucket[1] += tx.amount

    return [
        DailyPoint(day=day, income=income, expense=expense)
        for day, (income, expense) in totals.items()
    ]


def build_history_summaries(
    transactions: Iterable[Transaction],
    exclude_period_key: str,
    limit: int = 12,
) -> list[HistorySummary]:
    """
    Per-month totals for every month except the one being viewed.

    Most recent month first, at most `limit` entries.
    """
    groups: dict[str, list[Transaction]] = {}
    for tx in transactions:
        key = tx.period_key
        if key == exclude_period_key:
            continue
        groups.setdefault(key, []).append(tx)

    summaries = []
    for key in sorted(groups, reverse=True)[:limit]:
        income, expense = _totals(groups[key])
        summaries.append(HistorySummary(
            period_key=key,
            income=income,
            expense=expense,
            net=income - expense,
        ))
    return summaries
