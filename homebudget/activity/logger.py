"""
Activity Logger

DESIGN DECISION: Significant actions are logged to the local structured
log and nowhere else. There is no persisted audit trail; the budget
document is the only thing that is stored.

The activity logger:
- Is synchronous, because the ledger reducers it observes are synchronous
- Gracefully handles failures (a broken log sink never breaks a mutation)
"""

import logging
from typing import Optional

import structlog

from homebudget.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the structured log to stderr at the configured minimum level."""
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("homebudget").setLevel(level)


class ActivityLogger:
    """
    Central activity logging service.

    Every event goes to the structured local log at the level matching
    its severity. Nothing is written to storage.
    """

    def __init__(self, logger_name: str = "homebudget.activity"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> bool:
        """
        Log an activity event.

        Returns False if the log sink failed; never raises.
        """
        try:
            log_dict = event.to_log_dict()

            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception:
            return False

        return True

    def log_mutation(self, operation: str, **details) -> None:
        """Log a ledger mutation."""
        self.log(ActivityEventBuilder.ledger_mutated(operation, details))

    def log_achievement_unlocked(self, achievement_id: str, unlocked_at: str) -> None:
        self.log(ActivityEventBuilder.achievement_unlocked(achievement_id, unlocked_at))

    def log_document_loaded(self, user_id: str, transaction_count: int) -> None:
        self.log(ActivityEventBuilder.document_loaded(user_id, transaction_count))

    def log_document_created(self, user_id: str) -> None:
        self.log(ActivityEventBuilder.document_created(user_id))

    def log_document_saved(self, user_id: str) -> None:
        self.log(ActivityEventBuilder.document_saved(user_id))

    def log_save_failed(self, user_id: str, error: str) -> None:
        """Log a failed save. The in-memory snapshot is kept."""
        self.log(ActivityEventBuilder.save_failed(user_id, error))

    def log_load_failed(self, user_id: str, error: str) -> None:
        self.log(ActivityEventBuilder.load_failed(user_id, error))

    def log_document_imported(self, transaction_count: int) -> None:
        self.log(ActivityEventBuilder.document_imported(transaction_count))

    def log_import_rejected(self, issues: list[dict]) -> None:
        """Log an import that failed validation."""
        self.log(ActivityEventBuilder.import_rejected(issues))

    def log_document_exported(self, transaction_count: int) -> None:
        self.log(ActivityEventBuilder.document_exported(transaction_count))

    def log_rates_refreshed(self, rates: dict[str, float]) -> None:
        self.log(ActivityEventBuilder.rates_refreshed(rates))

    def log_rates_fallback(self, error: str, cached_from: Optional[str]) -> None:
        """Log an exchange-rate fetch failure and the cache used instead."""
        self.log(ActivityEventBuilder.rates_fallback(error, cached_from))
