"""
Main Orchestrator for MoneyNote

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger changes (draft → validate → save → audit)
2. Budget settings (input check → save → audit)
3. Voice entry (audio → text → drafts → user confirms → save)
4. Dashboard (transactions + budget → aggregates for one month)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written without passing the validator
- Voice drafts are never saved without user confirmation
- Past months are read-only
- Every step is audited

The ledger aggregator itself stays pure; this is where storage,
clocks and logging meet it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import NamedTuple, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from moneynote.agents import TranscriptionError, VoiceExpenseAgent, VoiceParseError
from moneynote.audit import AuditLogger, configure_logging, create_correlation_id
from moneynote.config import AppSettings, get_settings
from moneynote.exporting import export_csv, export_filename
from moneynote.i18n import Localizer
from moneynote.ledger import (
    build_daily_series,
    build_history_summaries,
    compute_monthly_stats,
    current_period_key,
    evaluate_budget,
    filter_by_period,
    local_today,
    search_filter,
    sort_transactions,
)
from moneynote.ledger.budget import budget_state
from moneynote.models.transaction import (
    BudgetSettings,
    BudgetStatus,
    Category,
    DailyPoint,
    HistorySummary,
    MonthlyStats,
    SortState,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from moneynote.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ChangeNotifier,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from moneynote.validation import TransactionValidator, validate_budget_input

logger = structlog.get_logger(__name__)

Amount = Union[Decimal, int, float, str]


class TransactionRejectedError(Exception):
    """A transaction change failed validation and was not written."""

    def __init__(self, result: ValidationResult, message: str = ""):
        self.result = result
        super().__init__(message or "Transaction rejected by validation")


class BudgetRejectedError(ValueError):
    """Budget input violated the threshold rules and was not written."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


def _issues_for_audit(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
    ]


class LedgerFlow:
    """
    Orchestrates writes to a user's ledger.

    Flow:
    1. Build a draft from form or voice input
    2. Validate → reject with TransactionRejectedError on errors
    3. Save → storage publishes a change event
    4. Audit
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = transaction_storage
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    async def _reject(
        self,
        result: ValidationResult,
        user_id: Optional[str],
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                draft_id=result.draft_id,
                issues=_issues_for_audit(result),
                user_id=user_id,
                correlation_id=correlation_id,
            )
        raise TransactionRejectedError(
            result, self._validator.get_user_friendly_summary(result)
        )

    async def _log_storage_failure(
        self,
        operation: str,
        error: StorageError,
        user_id: Optional[str],
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_save_failed(
                operation=operation,
                error_message=str(error),
                user_id=user_id,
                correlation_id=correlation_id,
            )

    async def add_transaction(
        self,
        user_id: Optional[str],
        amount: Optional[Amount],
        label: Optional[str],
        type: TransactionType = TransactionType.EXPENSE,
        category: Optional[Category] = None,
        date: Optional[str] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate and save a manually entered transaction.

        The date defaults to the user's local today.

        Raises:
            TransactionRejectedError: If validation finds errors
            StorageError: If the backend write fails
        """
        today = today or local_today()
        draft = TransactionDraft(
            amount=Decimal(str(amount)) if amount is not None else None,
            label=label,
            date=date or today.isoformat(),
            type=TransactionType(type),
            category=Category(category) if category else None,
        )
        return await self.save_draft(user_id, draft, today, correlation_id)

    async def save_draft(
        self,
        user_id: Optional[str],
        draft: TransactionDraft,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """Validate a draft and save it as a new transaction."""
        result = self._validator.validate(draft, today)
        if not result.is_valid:
            await self._reject(result, user_id, correlation_id)

        transaction = Transaction(
            amount=draft.amount,
            label=draft.label,
            date=draft.date,
            type=draft.type,
            category=draft.category,
            user_id=user_id,
        )

        try:
            saved = await self._storage.save_transaction(transaction)
        except StorageError as e:
            await self._log_storage_failure("save_transaction", e, user_id, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_saved(saved, correlation_id)

        return saved

    async def update_transaction(
        self,
        transaction: Transaction,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Replace a transaction as a whole record.

        Raises:
            NotFoundError: If the transaction no longer exists
            TransactionRejectedError: If validation finds errors,
                including edits to past months
        """
        existing = await self._storage.get_transaction(transaction.id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction.id}")

        draft = TransactionDraft(
            transaction_id=transaction.id,
            original_date=existing.date,
            amount=transaction.amount,
            label=transaction.label,
            date=transaction.date,
            type=transaction.type,
            category=transaction.category,
        )
        result = self._validator.validate(draft, today)
        if not result.is_valid:
            await self._reject(result, existing.user_id, correlation_id)

        # Ownership and insert time never change on edit
        updated = Transaction(
            id=existing.id,
            amount=draft.amount,
            label=draft.label,
            date=draft.date,
            type=draft.type,
            category=draft.category,
            created_at=existing.created_at,
            user_id=existing.user_id,
        )

        try:
            stored = await self._storage.update_transaction(updated)
        except StorageError as e:
            await self._log_storage_failure("update_transaction", e, existing.user_id, correlation_id)
            raise

        if self._audit_logger:
            changes = {
                field: {"from": str(getattr(existing, field)), "to": str(getattr(stored, field))}
                for field in ("amount", "label", "date", "type", "category")
                if getattr(existing, field) != getattr(stored, field)
            }
            await self._audit_logger.log_transaction_updated(stored, changes, correlation_id)

        return stored

    async def delete_transaction(
        self,
        transaction_id: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a transaction from the current month.

        Returns False when the transaction does not exist.

        Raises:
            TransactionRejectedError: If the transaction is in a past month
        """
        existing = await self._storage.get_transaction(transaction_id)
        if existing is None:
            return False

        result = self._validator.validate_deletion(existing, today)
        if not result.is_valid:
            await self._reject(result, existing.user_id, correlation_id)

        try:
            deleted = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            await self._log_storage_failure("delete_transaction", e, existing.user_id, correlation_id)
            raise

        if deleted and self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id, existing.user_id, correlation_id
            )
        return deleted

    async def load_transactions(self, user_id: Optional[str]) -> list[Transaction]:
        return await self._storage.list_transactions(user_id)

    async def export(
        self,
        user_id: Optional[str],
        username: str,
        transactions: Optional[list[Transaction]] = None,
        today: Optional[date] = None,
    ) -> tuple[str, str]:
        """
        CSV export of the user's ledger.

        Without explicit rows every stored transaction of the user is
        exported, across all months and regardless of the dashboard
        search.

        Returns:
            (filename, csv_text)
        """
        if transactions is None:
            transactions = await self._storage.list_transactions(user_id)
        content = export_csv(transactions)
        if self._audit_logger:
            await self._audit_logger.log_export_generated(user_id, len(transactions))
        return export_filename(username, today or local_today()), content


class BudgetFlow:
    """
    Orchestrates the user's monthly budget record.

    A record only counts for the month it was saved in;
    load_active_budget removes records left over from earlier months.
    """

    def __init__(
        self,
        budget_storage: BudgetStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = budget_storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app

    async def set_budget(
        self,
        user_id: Optional[str],
        limit_amount: Amount,
        warning_percent: Optional[int] = None,
        danger_percent: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BudgetSettings:
        """
        Save a budget for the current month.

        Thresholds default to the configured 80% / 100%.

        Raises:
            BudgetRejectedError: If the input breaks the threshold rules
        """
        if warning_percent is None:
            warning_percent = self._settings.default_warning_percent
        if danger_percent is None:
            danger_percent = self._settings.default_danger_percent
        limit = Decimal(str(limit_amount)) if limit_amount is not None else None

        issues = validate_budget_input(limit, warning_percent, danger_percent)
        if issues:
            raise BudgetRejectedError(issues)

        settings = BudgetSettings(
            user_id=user_id,
            limit_amount=limit,
            warning_percent=warning_percent,
            danger_percent=danger_percent,
            enabled=True,
            updated_at=now or datetime.now(),
        )
        saved = await self._storage.save_budget(settings)

        if self._audit_logger:
            await self._audit_logger.log_budget_updated(
                user_id, str(limit), warning_percent, danger_percent
            )
        return saved

    async def clear_budget(self, user_id: Optional[str]) -> bool:
        deleted = await self._storage.delete_budget(user_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_budget_cleared(user_id)
        return deleted

    async def set_enabled(
        self,
        user_id: Optional[str],
        enabled: bool,
    ) -> Optional[BudgetSettings]:
        """
        Switch the budget on or off without losing its limit.

        Returns None when the user has no budget.
        """
        current = await self._storage.get_budget(user_id)
        if current is None:
            return None

        saved = await self._storage.save_budget(
            current.model_copy(update={"enabled": enabled})
        )
        if self._audit_logger:
            await self._audit_logger.log_budget_toggled(user_id, enabled)
        return saved

    async def load_active_budget(
        self,
        user_id: Optional[str],
        today: Optional[date] = None,
    ) -> Optional[BudgetSettings]:
        """The user's budget for this month, or None."""
        today = today or local_today()
        current = await self._storage.get_budget(user_id)
        if current is None:
            return None

        if current.is_stale(today):
            logger.info(
                "stale_budget_discarded",
                user_id=user_id,
                updated_at=current.updated_at.isoformat(),
            )
            await self._storage.delete_budget(user_id)
            return None

        return current


class VoiceEntryFlow:
    """
    Orchestrates voice entry.

    Flow:
    1. Transcribe → text the user can correct
    2. Parse → drafts shown for review (PAUSE - require confirmation)
    3. Confirm → every draft validated, then all saved

    Human confirmation (step 3) is MANDATORY.
    The system NEVER auto-saves parsed drafts.
    """

    def __init__(
        self,
        agent: VoiceExpenseAgent,
        ledger_flow: LedgerFlow,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
    ):
        self._agent = agent
        self._ledger_flow = ledger_flow
        self._audit_logger = audit_logger
        self._validator = validator or TransactionValidator()

    async def transcribe(
        self,
        audio_bytes: bytes,
        mime_type: str = "audio/webm",
        correlation_id: Optional[UUID] = None,
    ) -> str:
        correlation_id = correlation_id or create_correlation_id()
        try:
            text = await self._agent.transcribe(audio_bytes, mime_type)
        except TranscriptionError as e:
            if self._audit_logger:
                await self._audit_logger.log_voice_failed(correlation_id, "transcribe", str(e))
            raise

        if self._audit_logger:
            await self._audit_logger.log_voice_transcribed(
                correlation_id=correlation_id,
                mime_type=mime_type,
                audio_size=len(audio_bytes),
                text_length=len(text),
            )
        return text

    async def parse(
        self,
        text: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[TransactionDraft]:
        correlation_id = correlation_id or create_correlation_id()
        try:
            drafts = await self._agent.parse_transactions(text, today)
        except VoiceParseError as e:
            if self._audit_logger:
                await self._audit_logger.log_voice_failed(correlation_id, "parse", str(e))
            raise

        if self._audit_logger:
            await self._audit_logger.log_voice_parsed(correlation_id, len(drafts))
        return drafts

    async def confirm_and_save(
        self,
        user_id: Optional[str],
        drafts: list[TransactionDraft],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Save drafts the user has reviewed.

        CRITICAL: This is called ONLY after explicit user confirmation.
        All drafts are validated before the first one is written, so a
        bad draft never leaves half of a recording saved.
        """
        correlation_id = correlation_id or create_correlation_id()

        for draft in drafts:
            result = self._validator.validate(draft, today)
            if not result.is_valid:
                if self._audit_logger:
                    await self._audit_logger.log_validation_failed(
                        draft_id=draft.draft_id,
                        issues=_issues_for_audit(result),
                        user_id=user_id,
                        correlation_id=correlation_id,
                    )
                raise TransactionRejectedError(
                    result, self._validator.get_user_friendly_summary(result)
                )

        if self._audit_logger:
            await self._audit_logger.log_user_confirmed(
                draft_ids=[d.draft_id for d in drafts],
                user_id=user_id,
                correlation_id=correlation_id,
            )

        saved = []
        for draft in drafts:
            saved.append(await self._ledger_flow.save_draft(user_id, draft, today, correlation_id))
        return saved

    async def discard(
        self,
        user_id: Optional[str],
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record that the user threw the parsed drafts away."""
        if self._audit_logger:
            await self._audit_logger.log_user_rejected(
                user_id=user_id,
                reason=reason,
                correlation_id=correlation_id or create_correlation_id(),
            )

    async def analyze(self, transactions: list[Transaction]) -> str:
        return await self._agent.analyze_finances(transactions)


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardSnapshot(BaseModel):
    """Everything the dashboard renders for one month."""

    period_key: str
    is_read_only: bool
    stats: MonthlyStats
    rows: list[Transaction] = Field(default_factory=list)
    daily_series: list[DailyPoint] = Field(default_factory=list)
    history: list[HistorySummary] = Field(default_factory=list)
    budget: BudgetStatus

    @property
    def row_count(self) -> int:
        return len(self.rows)


class DashboardService:
    """
    Runs the aggregator for the month being viewed.

    Synchronous and side-effect free; call it again on every change event.
    """

    def __init__(self, history_limit: int = 12):
        self._history_limit = history_limit

    def snapshot(
        self,
        transactions: list[Transaction],
        budget: Optional[BudgetSettings],
        period_key: Optional[str] = None,
        sort: Optional[SortState] = None,
        query: str = "",
        today: Optional[date] = None,
    ) -> DashboardSnapshot:
        today = today or local_today()
        current = current_period_key(today)
        period_key = period_key or current
        sort = sort or SortState()

        stats = compute_monthly_stats(transactions, period_key)
        rows = sort_transactions(
            filter_by_period(transactions, period_key), sort.key, sort.direction
        )
        rows = search_filter(rows, query)

        # The budget belongs to the current month only
        if period_key == current:
            status = evaluate_budget(stats.expense, budget, today)
        else:
            status = budget_state(stats.expense, 0)

        return DashboardSnapshot(
            period_key=period_key,
            is_read_only=period_key != current,
            stats=stats,
            rows=rows,
            daily_series=build_daily_series(transactions, period_key),
            history=build_history_summaries(
                transactions, period_key, limit=self._history_limit
            ),
            budget=status,
        )


# =============================================================================
# COMPOSITION ROOT
# =============================================================================

class AppComponents(NamedTuple):
    ledger_flow: LedgerFlow
    budget_flow: BudgetFlow
    voice_flow: Optional[VoiceEntryFlow]
    dashboard: DashboardService
    notifier: ChangeNotifier
    localizer: Localizer
    sheets_client: Optional[GoogleSheetsClient]


def create_app_components(
    use_storage: bool = True,
    settings: Optional[AppSettings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for in-memory storage.
        settings: Application settings (defaults to the environment)
    """
    settings = settings or get_settings().app
    configure_logging(settings.debug_mode)

    notifier = ChangeNotifier()
    sheets_client = None
    transaction_storage: TransactionStorageInterface
    budget_storage: BudgetStorageInterface
    audit_storage: AuditStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client, notifier)
            budget_storage = GoogleSheetsBudgetStorage(sheets_client, notifier)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            use_storage = False

    if not use_storage:
        transaction_storage = InMemoryTransactionStorage(notifier)
        budget_storage = InMemoryBudgetStorage(notifier)
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)
    localizer = Localizer(settings.default_language, settings.currency_label)
    validator = TransactionValidator(settings)

    ledger_flow = LedgerFlow(transaction_storage, validator, audit_logger)
    budget_flow = BudgetFlow(budget_storage, audit_logger, settings)

    voice_flow = None
    try:
        agent = VoiceExpenseAgent(localizer=localizer)
        voice_flow = VoiceEntryFlow(agent, ledger_flow, audit_logger, validator)
    except Exception as e:
        # Gemini not configured - voice entry and advice are hidden
        logger.warning("voice_agent_not_configured", error=str(e))

    return AppComponents(
        ledger_flow=ledger_flow,
        budget_flow=budget_flow,
        voice_flow=voice_flow,
        dashboard=DashboardService(history_limit=settings.history_months),
        notifier=notifier,
        localizer=localizer,
        sheets_client=sheets_client,
    )
