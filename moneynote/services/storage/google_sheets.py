"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Users can view and fix their own data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing the ledger logic.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from moneynote.config import GoogleSheetsSettings, get_settings
from moneynote.models.audit import AuditEvent, AuditEventType, AuditSeverity
from moneynote.models.transaction import (
    BudgetSettings,
    Category,
    Transaction,
    TransactionType,
)
from moneynote.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ChangeEvent,
    ChangeKind,
    ChangeNotifier,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)

logger = structlog.get_logger(__name__)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "date",
    "type",
    "label",
    "amount",
    "category",
    "created_at",
]

# Column mappings for Budgets sheet
BUDGET_COLUMNS = [
    "user_id",
    "limit_amount",
    "warning_percent",
    "danger_percent",
    "enabled",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and blank cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=100
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row. All users share the sheet; rows are
    filtered by the user_id column.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self.notifier = notifier or ChangeNotifier()

    def _transaction_to_row(self, tx: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            tx.id,
            tx.user_id or "",
            tx.date,
            tx.type.value,
            tx.label,
            str(tx.amount),
            tx.category.value if tx.category else "",
            tx.created_at.isoformat() if tx.created_at else "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        return Transaction(
            id=_cell(row, 0),
            user_id=_cell(row, 1) or None,
            date=_cell(row, 2),
            type=TransactionType(_cell(row, 3)),
            label=_cell(row, 4),
            amount=Decimal(_cell(row, 5)),
            category=Category(_cell(row, 6)) if _cell(row, 6) else None,
            created_at=datetime.fromisoformat(_cell(row, 7)) if _cell(row, 7) else None,
        )

    def _find_row(self, sheet: gspread.Worksheet, transaction_id: str) -> Optional[tuple[int, list]]:
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if row and row[0] == transaction_id:
                return idx, row
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
        reraise=True,
    )
    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """Append a transaction to Google Sheets."""
        try:
            sheet = self._client.get_transactions_sheet()
            if self._find_row(sheet, transaction.id) is not None:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")

            stored = transaction.model_copy(update={
                "created_at": transaction.created_at or datetime.now(),
            })
            sheet.append_row(self._transaction_to_row(stored), value_input_option="RAW")
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

        self.notifier.publish(ChangeEvent(
            ChangeKind.INSERT, "transaction", stored.id, stored.user_id
        ))
        return stored

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction by its ID."""
        try:
            sheet = self._client.get_transactions_sheet()
            found = self._find_row(sheet, transaction_id)
            return self._row_to_transaction(found[1]) if found else None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
        reraise=True,
    )
    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """Rewrite an existing transaction row."""
        try:
            sheet = self._client.get_transactions_sheet()
            found = self._find_row(sheet, transaction.id)
            if found is None:
                raise NotFoundError(f"Transaction not found: {transaction.id}")

            idx, row = found
            existing = self._row_to_transaction(row)
            stored = transaction.model_copy(update={"created_at": existing.created_at})
            sheet.update(
                range_name=f"A{idx}",
                values=[self._transaction_to_row(stored)],
                value_input_option="RAW",
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

        self.notifier.publish(ChangeEvent(
            ChangeKind.UPDATE, "transaction", stored.id, stored.user_id
        ))
        return stored

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction by ID."""
        try:
            sheet = self._client.get_transactions_sheet()
            found = self._find_row(sheet, transaction_id)
            if found is None:
                return False
            idx, row = found
            sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

        self.notifier.publish(ChangeEvent(
            ChangeKind.DELETE, "transaction", transaction_id, _cell(row, 1) or None
        ))
        return True

    async def list_transactions(self, user_id: Optional[str]) -> list[Transaction]:
        """All of a user's transactions, oldest first."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        owner = user_id or ""
        transactions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if _cell(row, 1) != owner:
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except Exception as e:
                # A hand-edited row must not hide the rest of the ledger
                logger.warning("skipped_malformed_row", sheet="transactions", row_id=row[0], error=str(e))

        transactions.sort(key=lambda tx: tx.date)
        return transactions


class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """
    Google Sheets implementation of budget storage.

    One row per user, keyed by user_id.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self.notifier = notifier or ChangeNotifier()

    def _budget_to_row(self, settings: BudgetSettings) -> list:
        return [
            settings.user_id or "",
            str(settings.limit_amount),
            settings.warning_percent,
            settings.danger_percent,
            str(settings.enabled),
            settings.updated_at.isoformat(),
        ]

    def _row_to_budget(self, row: list) -> BudgetSettings:
        return BudgetSettings(
            user_id=_cell(row, 0) or None,
            limit_amount=Decimal(_cell(row, 1)),
            warning_percent=int(_cell(row, 2, "80")),
            danger_percent=int(_cell(row, 3, "100")),
            enabled=_cell(row, 4, "True").lower() == "true",
            updated_at=datetime.fromisoformat(_cell(row, 5)),
        )

    def _find_row(self, sheet: gspread.Worksheet, user_id: Optional[str]) -> Optional[tuple[int, list]]:
        owner = user_id or ""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and _cell(row, 0) == owner:
                return idx, row
        return None

    async def get_budget(self, user_id: Optional[str]) -> Optional[BudgetSettings]:
        try:
            sheet = self._client.get_budgets_sheet()
            found = self._find_row(sheet, user_id)
            return self._row_to_budget(found[1]) if found else None
        except Exception as e:
            raise StorageError(f"Failed to get budget: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_budget(self, settings: BudgetSettings) -> BudgetSettings:
        try:
            sheet = self._client.get_budgets_sheet()
            found = self._find_row(sheet, settings.user_id)
            row = self._budget_to_row(settings)
            if found is None:
                sheet.append_row(row, value_input_option="RAW")
                kind = ChangeKind.INSERT
            else:
                sheet.update(range_name=f"A{found[0]}", values=[row], value_input_option="RAW")
                kind = ChangeKind.UPDATE
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

        self.notifier.publish(ChangeEvent(
            kind, "budget", settings.user_id or "", settings.user_id
        ))
        return settings

    async def delete_budget(self, user_id: Optional[str]) -> bool:
        try:
            sheet = self._client.get_budgets_sheet()
            found = self._find_row(sheet, user_id)
            if found is None:
                return False
            sheet.delete_rows(found[0])
        except Exception as e:
            raise StorageError(f"Failed to delete budget: {e}")

        self.notifier.publish(ChangeEvent(
            ChangeKind.DELETE, "budget", user_id or "", user_id
        ))
        return True


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_cell(row, 5) or None,
            user_id=_cell(row, 6) or None,
            correlation_id=UUID(_cell(row, 7)) if _cell(row, 7) else None,
            description=_cell(row, 8),
            details=json.loads(_cell(row, 9)) if _cell(row, 9) else {},
            error_message=_cell(row, 10) or None,
            is_user_action=_cell(row, 11).lower() == "true",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except Exception:
                    continue

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
