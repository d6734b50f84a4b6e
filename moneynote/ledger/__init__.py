"""
Ledger Package

Pure aggregation over transactions and the budget classifier.
"""

from moneynote.ledger.aggregator import (
    amount_from_input,
    amount_text,
    build_daily_series,
    build_history_summaries,
    compute_monthly_stats,
    current_period_key,
    days_in_month,
    filter_by_period,
    is_current_period,
    local_today,
    period_key_of,
    search_filter,
    sort_transactions,
    split_period_key,
    toggle_sort,
)
from moneynote.ledger.budget import budget_state, evaluate_budget

__all__ = [
    "amount_from_input",
    "amount_text",
    "build_daily_series",
    "build_history_summaries",
    "budget_state",
    "compute_monthly_stats",
    "current_period_key",
    "days_in_month",
    "evaluate_budget",
    "filter_by_period",
    "is_current_period",
    "local_today",
    "period_key_of",
    "search_filter",
    "sort_transactions",
    "split_period_key",
    "toggle_sort",
]
