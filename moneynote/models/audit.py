"""
Audit Models for MoneyNote

Every mutation of a user's ledger and every call to an external
service is logged for audit purposes. This provides:
1. Traceability of who changed which record and when
2. Debugging information when an AI call or a save fails
3. Ability to reconstruct a month's history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SAVE_FAILED = "save_failed"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Budget
    BUDGET_UPDATED = "budget_updated"
    BUDGET_CLEARED = "budget_cleared"
    BUDGET_TOGGLED = "budget_toggled"

    # Voice entry
    VOICE_TRANSCRIBED = "voice_transcribed"
    VOICE_PARSED = "voice_parsed"
    VOICE_FAILED = "voice_failed"
    USER_CONFIRMED = "user_confirmed"
    USER_REJECTED = "user_rejected"

    # Export
    EXPORT_GENERATED = "export_generated"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'voice')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    user_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one voice entry)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.user_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_saved(tx, correlation_id)
        event = AuditEventBuilder.budget_updated(user_id, limit, 80, 100)
    """

    @staticmethod
    def transaction_saved(
        transaction_id: str,
        user_id: Optional[str],
        label: str,
        amount: str,
        tx_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {label} - {amount}",
            details={
                "label": label,
                "amount": amount,
                "type": tx_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        user_id: Optional[str],
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Transaction updated",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        user_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Storage operation failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def validation_failed(
        draft_id: UUID,
        issues: list[dict],
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            entity_id=str(draft_id),
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def budget_updated(
        user_id: Optional[str],
        limit_amount: str,
        warning_percent: int,
        danger_percent: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=user_id,
            user_id=user_id,
            description=f"Budget set to {limit_amount}",
            details={
                "limit_amount": limit_amount,
                "warning_percent": warning_percent,
                "danger_percent": danger_percent,
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_cleared(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CLEARED,
            entity_type="budget",
            entity_id=user_id,
            user_id=user_id,
            description="Budget removed",
            is_user_action=True,
        )

    @staticmethod
    def budget_toggled(user_id: Optional[str], enabled: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_TOGGLED,
            entity_type="budget",
            entity_id=user_id,
            user_id=user_id,
            description=f"Budget {'enabled' if enabled else 'disabled'}",
            details={"enabled": enabled},
            is_user_action=True,
        )

    @staticmethod
    def voice_transcribed(
        correlation_id: UUID,
        mime_type: str,
        audio_size: int,
        text_length: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOICE_TRANSCRIBED,
            entity_type="voice",
            correlation_id=correlation_id,
            description=f"Audio transcribed ({text_length} characters)",
            details={
                "mime_type": mime_type,
                "audio_size_bytes": audio_size,
                "text_length": text_length,
            },
        )

    @staticmethod
    def voice_parsed(
        correlation_id: UUID,
        draft_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOICE_PARSED,
            entity_type="voice",
            correlation_id=correlation_id,
            description=f"Voice text parsed into {draft_count} drafts",
            details={"draft_count": draft_count},
        )

    @staticmethod
    def voice_failed(
        correlation_id: UUID,
        stage: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOICE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="voice",
            correlation_id=correlation_id,
            description=f"Voice entry failed at {stage}",
            error_message=error_message,
            details={"stage": stage},
        )

    @staticmethod
    def user_confirmed(
        draft_ids: list[UUID],
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CONFIRMED,
            entity_type="voice",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"User confirmed {len(draft_ids)} voice drafts",
            details={"draft_ids": [str(d) for d in draft_ids]},
            is_user_action=True,
        )

    @staticmethod
    def user_rejected(
        user_id: Optional[str],
        reason: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REJECTED,
            entity_type="voice",
            user_id=user_id,
            correlation_id=correlation_id,
            description="User discarded voice drafts",
            details={"reason": reason or "No reason provided"},
            is_user_action=True,
        )

    @staticmethod
    def export_generated(
        user_id: Optional[str],
        row_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="export",
            user_id=user_id,
            description=f"CSV export with {row_count} rows",
            details={"row_count": row_count},
            is_user_action=True,
        )
