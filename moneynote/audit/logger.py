"""
Audit Logger

DESIGN DECISION: Every change to a user's ledger is logged.
This provides:
1. Complete traceability
2. Debugging capability when AI or storage calls fail
3. A record of voice entries the user accepted or discarded

The audit logger:
- Is async to match the storage layer
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from moneynote.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from moneynote.models.transaction import Transaction
from moneynote.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """
    Route structlog's JSON lines to stderr at the right level.

    Called once by the composition root.
    """
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("moneynote.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_saved(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_saved(
            transaction_id=transaction.id,
            user_id=transaction.user_id,
            label=transaction.label,
            amount=str(transaction.amount),
            tx_type=transaction.type.value,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction: Transaction,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_updated(
            transaction_id=transaction.id,
            user_id=transaction.user_id,
            changes=changes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        user_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.save_failed(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        draft_id: UUID,
        issues: list[dict],
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            draft_id=draft_id,
            issues=issues,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_updated(
        self,
        user_id: Optional[str],
        limit_amount: str,
        warning_percent: int,
        danger_percent: int,
    ) -> None:
        event = AuditEventBuilder.budget_updated(
            user_id=user_id,
            limit_amount=limit_amount,
            warning_percent=warning_percent,
            danger_percent=danger_percent,
        )
        await self.log(event)

    async def log_budget_cleared(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.budget_cleared(user_id))

    async def log_budget_toggled(self, user_id: Optional[str], enabled: bool) -> None:
        await self.log(AuditEventBuilder.budget_toggled(user_id, enabled))

    async def log_voice_transcribed(
        self,
        correlation_id: UUID,
        mime_type: str,
        audio_size: int,
        text_length: int,
    ) -> None:
        event = AuditEventBuilder.voice_transcribed(
            correlation_id=correlation_id,
            mime_type=mime_type,
            audio_size=audio_size,
            text_length=text_length,
        )
        await self.log(event)

    async def log_voice_parsed(self, correlation_id: UUID, draft_count: int) -> None:
        await self.log(AuditEventBuilder.voice_parsed(correlation_id, draft_count))

    async def log_voice_failed(
        self,
        correlation_id: UUID,
        stage: str,
        error_message: str,
    ) -> None:
        event = AuditEventBuilder.voice_failed(
            correlation_id=correlation_id,
            stage=stage,
            error_message=error_message,
        )
        await self.log(event)

    async def log_user_confirmed(
        self,
        draft_ids: list[UUID],
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log user confirmation of voice drafts."""
        event = AuditEventBuilder.user_confirmed(
            draft_ids=draft_ids,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_user_rejected(
        self,
        user_id: Optional[str],
        reason: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log user rejection of voice drafts."""
        event = AuditEventBuilder.user_rejected(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_export_generated(self, user_id: Optional[str], row_count: int) -> None:
        await self.log(AuditEventBuilder.export_generated(user_id, row_count))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one voice entry).
    Pass it through all subsequent operations.
    """
    return uuid4()
