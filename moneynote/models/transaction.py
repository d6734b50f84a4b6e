"""
Core Data Models for MoneyNote

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at the write boundary
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Keep the aggregator free of parsing concerns

DESIGN DECISION: Transaction dates are plain "YYYY-MM-DD" strings.
They are the user's local calendar day and are never converted to UTC.
Grouping by month and day is done with string prefixes, so a record
entered at 23:50 local time always lands on the day the user saw.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
PERIOD_PATTERN = r"^\d{4}-\d{2}$"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(str, Enum):
    """
    Transaction categories.

    DESIGN DECISION: Categories are codes, not display strings.
    The Localizer turns a code into Burmese, English or Japanese text,
    so stored data never depends on the UI language.
    """
    # Expense
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    HEALTH = "health"
    BILLS = "bills"
    PHONE = "phone"
    GIFT = "gift"
    WORK = "work"
    EDUCATION = "education"
    # Income
    SALARY = "salary"
    BONUS = "bonus"
    SALES = "sales"
    ALLOWANCE = "allowance"
    REFUND = "refund"
    # Both
    GENERAL = "general"

    @classmethod
    def for_type(cls, tx_type: "TransactionType") -> list["Category"]:
        """Categories offered for a transaction type, in display order."""
        if tx_type == TransactionType.INCOME:
            return list(INCOME_CATEGORIES)
        return list(EXPENSE_CATEGORIES)

    @classmethod
    def from_ai_label(cls, name: Optional[str]) -> "Category":
        """
        Map a category name returned by the language model to a code.

        Accepts both codes ("food") and the English names used in the
        parsing prompt ("Bills/Internet"). Anything else is GENERAL.
        """
        if not name:
            return cls.GENERAL
        key = name.strip().lower()
        try:
            return cls(key)
        except ValueError:
            return AI_CATEGORY_NAMES.get(key, cls.GENERAL)


EXPENSE_CATEGORIES = (
    Category.FOOD,
    Category.TRANSPORT,
    Category.SHOPPING,
    Category.HEALTH,
    Category.BILLS,
    Category.PHONE,
    Category.GIFT,
    Category.WORK,
    Category.EDUCATION,
    Category.GENERAL,
)

INCOME_CATEGORIES = (
    Category.SALARY,
    Category.BONUS,
    Category.SALES,
    Category.ALLOWANCE,
    Category.REFUND,
    Category.GENERAL,
)

# English names the parsing prompt asks the model to choose from
AI_CATEGORY_NAMES = {
    "food": Category.FOOD,
    "transport": Category.TRANSPORT,
    "shopping": Category.SHOPPING,
    "health": Category.HEALTH,
    "bills/internet": Category.BILLS,
    "phone bill": Category.PHONE,
    "gift/donation": Category.GIFT,
    "work": Category.WORK,
    "education": Category.EDUCATION,
    "general": Category.GENERAL,
    "salary": Category.SALARY,
    "bonus": Category.BONUS,
    "business/sales": Category.SALES,
    "allowance": Category.ALLOWANCE,
    "refund": Category.REFUND,
}


class EntrySource(str, Enum):
    """How a transaction draft was produced."""
    MANUAL = "manual"
    VOICE = "voice"


class SortKey(str, Enum):
    """Columns the transaction table can be sorted by."""
    DATE = "date"
    LABEL = "label"
    AMOUNT = "amount"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class BudgetState(str, Enum):
    """
    Budget display state.

    UNCONFIGURED is deliberately separate from NORMAL: the UI shows a
    setup prompt instead of a progress bar.
    """
    UNCONFIGURED = "unconfigured"
    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


# =============================================================================
# CORE TRANSACTION MODELS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Proposed transaction data, from the manual form or the voice parser.

    CRITICAL: This is PROPOSED data, NOT verified.
    It goes through TransactionValidator before becoming a Transaction.
    All fields are loose because the model or the user may leave gaps.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    draft_id: UUID = Field(
        default_factory=uuid4,
        description="Unique ID for this draft"
    )
    source: EntrySource = Field(
        default=EntrySource.MANUAL,
        description="Where the draft came from"
    )

    amount: Optional[Decimal] = None
    label: Optional[str] = Field(default=None, max_length=200)
    date: Optional[str] = Field(
        default=None,
        description="Local calendar day, YYYY-MM-DD"
    )
    type: TransactionType = TransactionType.EXPENSE
    category: Optional[Category] = None

    # Set when the draft edits an existing record
    transaction_id: Optional[str] = None
    original_date: Optional[str] = Field(
        default=None,
        description="Date of the record being edited"
    )


class Transaction(BaseModel):
    """
    A saved income or expense record.

    Owned by exactly one user. The aggregator only reads these.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount, always positive; direction comes from type"
    )
    label: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    date: str = Field(
        ...,
        pattern=DATE_PATTERN,
        description="Local calendar day, YYYY-MM-DD"
    )
    type: TransactionType
    category: Optional[Category] = None
    created_at: Optional[datetime] = Field(
        default=None,
        description="Assigned by storage on insert"
    )
    user_id: Optional[str] = None

    @field_validator('date')
    @classmethod
    def validate_calendar_day(cls, v: str) -> str:
        """Reject strings like 2024-02-30 that match the pattern only."""
        try:
            date.fromisoformat(v)
        except ValueError:
            raise ValueError(f"Not a calendar date: {v}")
        return v

    @property
    def period_key(self) -> str:
        return self.date[:7]

    @property
    def day(self) -> str:
        return self.date[8:10]


# =============================================================================
# BUDGET MODEL
# =============================================================================

class BudgetSettings(BaseModel):
    """
    Monthly spending limit and alert thresholds for one user.

    A record only applies to the month it was last updated in.
    A month boundary resets budgeting (see is_stale).
    """

    user_id: Optional[str] = None
    limit_amount: Decimal = Field(
        ...,
        gt=0,
        description="Monthly spending limit"
    )
    warning_percent: int = Field(
        default=80,
        ge=50,
        le=95,
        description="Usage percent at which the warning zone starts"
    )
    danger_percent: int = Field(
        default=100,
        ge=55,
        le=100,
        description="Usage percent at which the danger zone starts"
    )
    enabled: bool = Field(
        default=True,
        description="User toggle; a disabled budget is never evaluated"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="Local time of the last change"
    )

    @model_validator(mode='after')
    def validate_thresholds(self) -> 'BudgetSettings':
        if self.danger_percent < self.warning_percent + 5:
            raise ValueError(
                "Danger threshold must be at least 5% above the warning threshold"
            )
        return self

    def is_stale(self, today: date) -> bool:
        """True when the settings belong to another calendar month."""
        return (self.updated_at.year, self.updated_at.month) != (today.year, today.month)


# =============================================================================
# DERIVED AGGREGATES (never persisted)
# =============================================================================

class MonthlyStats(BaseModel):
    """Income, expense and net for one period."""

    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)
    net: Decimal = Decimal(0)


class DailyPoint(BaseModel):
    """One x-axis entry of the daily income/expense chart."""

    day: str = Field(..., pattern=r"^\d{2}$")
    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)


class HistorySummary(BaseModel):
    """Totals for a past month in the history list."""

    period_key: str = Field(..., pattern=PERIOD_PATTERN)
    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)
    net: Decimal = Decimal(0)


class SortState(BaseModel):
    """Current sort column and direction of the transaction table."""
    model_config = ConfigDict(frozen=True)

    key: SortKey = SortKey.DATE
    direction: SortDirection = SortDirection.DESC


class BudgetStatus(BaseModel):
    """
    Result of classifying a month's spending against a budget.

    overspend is expense - limit and may be negative. Only a positive
    value is an alert; use is_over_budget before showing it.
    """

    state: BudgetState
    enabled: bool = True
    expense: Decimal = Decimal(0)
    limit_amount: Decimal = Decimal(0)
    usage_percent: float = 0.0
    warning_percent: int = 80
    danger_percent: int = 100
    overspend: Decimal = Decimal(0)

    @property
    def is_configured(self) -> bool:
        return self.state != BudgetState.UNCONFIGURED

    @property
    def is_over_budget(self) -> bool:
        return self.is_configured and self.overspend > 0

    @property
    def progress_percent(self) -> float:
        """Usage clamped to 100 for progress bars."""
        return min(self.usage_percent, 100.0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required fields, formats)
    Stage 2: Semantic validation (dates, amounts, read-only months)
    """

    draft_id: UUID = Field(
        ...,
        description="ID of the draft being validated"
    )
    validated_at: datetime = Field(
        default_factory=datetime.now
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
