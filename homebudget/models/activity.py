"""
Activity Event Models for Home Budget

Significant actions are described by an ActivityEvent and written to the
local structured log. This gives:
1. Traceability of ledger mutations while debugging
2. A clear record of I/O failures (saves, imports, exchange rates)

DESIGN DECISION: Events are only logged, never persisted alongside the
budget document. The document itself is the record of truth.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Ledger
    LEDGER_MUTATED = "ledger_mutated"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"

    # Document lifecycle
    DOCUMENT_LOADED = "document_loaded"
    DOCUMENT_CREATED = "document_created"
    DOCUMENT_SAVED = "document_saved"
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"

    # Import / export
    DOCUMENT_IMPORTED = "document_imported"
    IMPORT_REJECTED = "import_rejected"
    DOCUMENT_EXPORTED = "document_exported"

    # Exchange rates
    RATES_REFRESHED = "rates_refreshed"
    RATES_FALLBACK = "rates_fallback"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEvent(BaseModel):
    """A single logged event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What the event is about
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'document')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.save_failed(user_id="u1", error="timeout")
        logger.log(event)
    """

    @staticmethod
    def ledger_mutated(operation: str, details: Optional[dict] = None) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_MUTATED,
            severity=ActivitySeverity.DEBUG,
            entity_type="ledger",
            description=f"Ledger operation applied: {operation}",
            details={"operation": operation, **(details or {})},
        )

    @staticmethod
    def achievement_unlocked(achievement_id: str, unlocked_at: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACHIEVEMENT_UNLOCKED,
            entity_type="achievement",
            entity_id=achievement_id,
            description=f"Achievement unlocked: {achievement_id}",
            details={"unlocked_at": unlocked_at},
        )

    @staticmethod
    def document_loaded(user_id: str, transaction_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_LOADED,
            entity_type="document",
            entity_id=user_id,
            description="Budget document loaded",
            details={"transactions": transaction_count},
        )

    @staticmethod
    def document_created(user_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_CREATED,
            entity_type="document",
            entity_id=user_id,
            description="No stored budget found, created a starter document",
        )

    @staticmethod
    def document_saved(user_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_SAVED,
            entity_type="document",
            entity_id=user_id,
            description="Budget document saved",
        )

    @staticmethod
    def save_failed(user_id: str, error: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SAVE_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="document",
            entity_id=user_id,
            description="Saving the budget document failed; changes kept in memory",
            error_message=error,
        )

    @staticmethod
    def load_failed(user_id: str, error: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LOAD_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="document",
            entity_id=user_id,
            description="Loading the budget document failed; using fallback data",
            error_message=error,
        )

    @staticmethod
    def document_imported(transaction_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_IMPORTED,
            entity_type="document",
            description="Imported document replaced the current budget",
            details={"transactions": transaction_count},
        )

    @staticmethod
    def import_rejected(issues: list[dict]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.IMPORT_REJECTED,
            severity=ActivitySeverity.WARNING,
            entity_type="document",
            description="Import rejected: document failed validation",
            details={"issues": issues},
        )

    @staticmethod
    def document_exported(transaction_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_EXPORTED,
            entity_type="document",
            description="Budget document exported",
            details={"transactions": transaction_count},
        )

    @staticmethod
    def rates_refreshed(rates: dict[str, float]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RATES_REFRESHED,
            entity_type="exchange_rates",
            description="Exchange rates refreshed",
            details={"rates": rates},
        )

    @staticmethod
    def rates_fallback(error: str, cached_from: Optional[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RATES_FALLBACK,
            severity=ActivitySeverity.WARNING,
            entity_type="exchange_rates",
            description="Exchange rate fetch failed; using cached rates",
            details={"cached_from": cached_from},
            error_message=error,
        )
