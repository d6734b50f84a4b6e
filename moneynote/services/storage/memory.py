"""
In-Memory Storage Implementation

Used by the test suite and when no spreadsheet is configured.
Data lives for the lifetime of the process only.

Records are copied on the way in and on the way out so callers can
never mutate stored state behind the notifier's back.
"""

from datetime import datetime
from typing import Optional

from moneynote.models.audit import AuditEvent
from moneynote.models.transaction import BudgetSettings, Transaction
from moneynote.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ChangeEvent,
    ChangeKind,
    ChangeNotifier,
    DuplicateError,
    NotFoundError,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):

    def __init__(self, notifier: Optional[ChangeNotifier] = None):
        self.notifier = notifier or ChangeNotifier()
        self._records: dict[str, Transaction] = {}

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._records:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")

        stored = transaction.model_copy(update={
            "created_at": transaction.created_at or datetime.now(),
        })
        self._records[stored.id] = stored
        self.notifier.publish(ChangeEvent(
            ChangeKind.INSERT, "transaction", stored.id, stored.user_id
        ))
        return stored.model_copy()

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        record = self._records.get(transaction_id)
        return record.model_copy() if record else None

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        existing = self._records.get(transaction.id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction.id}")

        # created_at belongs to the original insert
        stored = transaction.model_copy(update={"created_at": existing.created_at})
        self._records[stored.id] = stored
        self.notifier.publish(ChangeEvent(
            ChangeKind.UPDATE, "transaction", stored.id, stored.user_id
        ))
        return stored.model_copy()

    async def delete_transaction(self, transaction_id: str) -> bool:
        record = self._records.pop(transaction_id, None)
        if record is None:
            return False
        self.notifier.publish(ChangeEvent(
            ChangeKind.DELETE, "transaction", transaction_id, record.user_id
        ))
        return True

    async def list_transactions(self, user_id: Optional[str]) -> list[Transaction]:
        owned = [
            tx.model_copy() for tx in self._records.values()
            if tx.user_id == user_id
        ]
        owned.sort(key=lambda tx: tx.date)
        return owned


class InMemoryBudgetStorage(BudgetStorageInterface):

    def __init__(self, notifier: Optional[ChangeNotifier] = None):
        self.notifier = notifier or ChangeNotifier()
        self._records: dict[Optional[str], BudgetSettings] = {}

    async def get_budget(self, user_id: Optional[str]) -> Optional[BudgetSettings]:
        record = self._records.get(user_id)
        return record.model_copy() if record else None

    async def save_budget(self, settings: BudgetSettings) -> BudgetSettings:
        kind = ChangeKind.UPDATE if settings.user_id in self._records else ChangeKind.INSERT
        self._records[settings.user_id] = settings.model_copy()
        self.notifier.publish(ChangeEvent(
            kind, "budget", settings.user_id or "", settings.user_id
        ))
        return settings.model_copy()

    async def delete_budget(self, user_id: Optional[str]) -> bool:
        if self._records.pop(user_id, None) is None:
            return False
        self.notifier.publish(ChangeEvent(
            ChangeKind.DELETE, "budget", user_id or "", user_id
        ))
        return True


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
