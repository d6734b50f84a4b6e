"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the ledger logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Filtering by month, sorting and searching are the aggregator's job;
storage only hands back a user's records.

DESIGN DECISION: Storage announces its own changes.
Every successful insert, update or delete is published on a
ChangeNotifier. The UI subscribes and re-runs the aggregator;
there are no timers and no polling.
"""

import inspect
import weakref
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, NamedTuple, Optional

import structlog

from moneynote.models.audit import AuditEvent
from moneynote.models.transaction import BudgetSettings, Transaction

logger = structlog.get_logger(__name__)


# =============================================================================
# CHANGE EVENTS
# =============================================================================

class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(NamedTuple):
    kind: ChangeKind
    entity: str
    entity_id: str
    user_id: Optional[str] = None


ChangeCallback = Callable[[ChangeEvent], None]


def _strong_ref(callback: ChangeCallback) -> Callable[[], ChangeCallback]:
    return lambda: callback


class ChangeNotifier:
    """
    Synchronous publish/subscribe for storage changes.

    Callbacks run in subscription order on the caller's thread.
    A failing callback is logged and does not stop the others or
    undo the change that was already written.
    """

    def __init__(self):
        self._subscribers: list[Callable[[], Optional[ChangeCallback]]] = []

    def _live(self) -> list[ChangeCallback]:
        """Current callbacks; weak subscriptions that died are dropped."""
        callbacks = []
        alive = []
        for ref in self._subscribers:
            callback = ref()
            if callback is not None:
                callbacks.append(callback)
                alive.append(ref)
        self._subscribers = alive
        return callbacks

    def subscribe(self, callback: ChangeCallback, weak: bool = False) -> None:
        """
        Register a callback.

        With weak=True only a weak reference is kept, so the subscription
        ends by itself once the owner drops the callback (a UI session
        whose state is discarded, for example).
        """
        if callback in self._live():
            return
        if not weak:
            ref = _strong_ref(callback)
        elif inspect.ismethod(callback):
            ref = weakref.WeakMethod(callback)
        else:
            ref = weakref.ref(callback)
        self._subscribers.append(ref)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        self._subscribers = [
            ref for ref in self._subscribers
            if ref() is not None and ref() != callback
        ]

    def publish(self, event: ChangeEvent) -> None:
        for callback in self._live():
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "change_subscriber_failed",
                    kind=event.kind.value,
                    entity=event.entity,
                    entity_id=event.entity_id,
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._live())


# =============================================================================
# STORAGE INTERFACES
# =============================================================================

class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods and publish on `notifier`.
    """

    notifier: ChangeNotifier

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert a new transaction.

        Args:
            transaction: The transaction to save

        Returns:
            The stored transaction, with id and created_at assigned

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace an existing transaction as a whole record.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_transactions(self, user_id: Optional[str]) -> list[Transaction]:
        """
        All transactions owned by a user, ordered by date ascending.
        """
        pass


class BudgetStorageInterface(ABC):
    """
    Abstract interface for budget settings.

    One record per user. Staleness is decided by the caller, not here.
    """

    notifier: ChangeNotifier

    @abstractmethod
    async def get_budget(self, user_id: Optional[str]) -> Optional[BudgetSettings]:
        pass

    @abstractmethod
    async def save_budget(self, settings: BudgetSettings) -> BudgetSettings:
        """Insert or replace the user's budget record."""
        pass

    @abstractmethod
    async def delete_budget(self, user_id: Optional[str]) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
