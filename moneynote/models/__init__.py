"""
Data Models Package

This package contains all Pydantic models used in MoneyNote.
All data flowing through the system must conform to these schemas.
"""

from moneynote.models.transaction import (
    BudgetSettings,
    BudgetState,
    BudgetStatus,
    Category,
    DailyPoint,
    EntrySource,
    HistorySummary,
    MonthlyStats,
    SortDirection,
    SortKey,
    SortState,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from moneynote.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BudgetSettings",
    "BudgetState",
    "BudgetStatus",
    "Category",
    "DailyPoint",
    "EntrySource",
    "HistorySummary",
    "MonthlyStats",
    "SortDirection",
    "SortKey",
    "SortState",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
