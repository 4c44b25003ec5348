"""
Activity Logger

Every ledger mutation, load and save is logged as a structured event.
This provides:
1. Traceability of what changed a ledger and when
2. Debugging information when a save fails or an invariant breaks

The activity logger:
- Writes locally only (no persisted audit trail)
- Never raises; logging problems must not break a ledger operation
- Renders JSON lines by default, or console output for local work
"""

import logging
from typing import Optional

import structlog

from finledger.config import AppSettings, get_settings
from finledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


LOGGER_NAME = "finledger"

_configured = False


def configure_logging(settings: Optional[AppSettings] = None, force: bool = False) -> None:
    """
    Configure structlog on top of the stdlib `finledger` logger.

    Safe to call repeatedly; only the first call (or a forced one) applies.
    """
    global _configured
    if _configured and not force:
        return

    settings = settings or get_settings().app

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    stdlib_logger = logging.getLogger(LOGGER_NAME)
    stdlib_logger.setLevel(settings.log_level)
    if not stdlib_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)

    _configured = True


class ActivityLogger:
    """
    Central activity logging service.

    One instance per session; `account_id` is attached to every event.
    """

    def __init__(self, account_id: Optional[str] = None):
        configure_logging()
        self._account_id = account_id
        self._logger = structlog.get_logger(f"{LOGGER_NAME}.activity")

    def log(self, event: ActivityEvent) -> None:
        """Write an event at the level matching its severity."""
        if event.account_id is None and self._account_id is not None:
            event = event.model_copy(update={"account_id": self._account_id})
        log_dict = event.to_log_dict()

        try:
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception as e:
            logging.getLogger(LOGGER_NAME).warning("activity logging failed: %s", e)

    @property
    def account_id(self) -> str:
        return self._account_id or "-"

    def log_ledger_loaded(self, transaction_count: int, category_count: int, created: bool) -> None:
        self.log(ActivityEventBuilder.ledger_loaded(
            self.account_id, transaction_count, category_count, created
        ))

    def log_ledger_saved(self, transaction_count: int) -> None:
        self.log(ActivityEventBuilder.ledger_saved(self.account_id, transaction_count))

    def log_save_failed(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.save_failed(self.account_id, error_message))

    def log_transaction_created(self, transaction_id: str, amount: str, parent_id: Optional[str]) -> None:
        self.log(ActivityEventBuilder.transaction_created(
            self.account_id, transaction_id, amount, parent_id
        ))

    def log_transaction_updated(self, transaction_id: str, amount: str) -> None:
        self.log(ActivityEventBuilder.transaction_updated(self.account_id, transaction_id, amount))

    def log_transaction_deleted(self, transaction_id: str, removed_ids: list[str]) -> None:
        self.log(ActivityEventBuilder.transaction_deleted(
            self.account_id, transaction_id, removed_ids
        ))

    def log_parent_rederived(self, parent_id: str, amount: str) -> None:
        self.log(ActivityEventBuilder.parent_rederived(self.account_id, parent_id, amount))

    def log_category_change(self, event_type: ActivityEventType, category_id: str, name: str) -> None:
        self.log(ActivityEventBuilder.category_changed(
            self.account_id, event_type, category_id, name
        ))

    def log_category_delete_refused(self, category_id: str, name: str, usage_count: int) -> None:
        self.log(ActivityEventBuilder.category_delete_refused(
            self.account_id, category_id, name, usage_count
        ))

    def log_preferences_updated(self, changes: dict) -> None:
        self.log(ActivityEventBuilder.preferences_updated(self.account_id, changes))

    def log_validation_failed(self, operation: str, issues: list[dict]) -> None:
        self.log(ActivityEventBuilder.validation_failed(self.account_id, operation, issues))

    def log_export_generated(self, row_count: int) -> None:
        self.log(ActivityEventBuilder.export_generated(self.account_id, row_count))
