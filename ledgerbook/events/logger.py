"""
Ledger Event Logger

Every successful engine mutation produces a LedgerEvent. The logger:
- Writes it as a structured log line
- Hands it to every subscribed listener (e.g. a UI that re-queries)
- Isolates listeners: one that raises is logged and skipped, the
  engine call that produced the event still succeeds

Failed engine operations are logged here too, before the error is
re-raised to the caller.
"""

import logging
import threading
from typing import Callable, Optional

import structlog

from ledgerbook.models.events import LedgerEvent

LedgerListener = Callable[[LedgerEvent], None]


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        level: Minimum level for the "ledgerbook" logger tree
        json_logs: JSON lines if True, human-readable console output otherwise
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
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
        cache_logger_on_first_use=False,
    )
    logging.getLogger("ledgerbook").setLevel(level)


configure_logging()


class LedgerEventLogger:
    """
    Central event logging and notification service.
    """

    def __init__(self):
        self._logger = structlog.get_logger("ledgerbook.events")
        self._listeners: list[LedgerListener] = []
        self._listeners_lock = threading.Lock()

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """
        Register a listener for every future event.

        Returns:
            A function that removes the listener again
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: LedgerListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def emit(self, event: LedgerEvent) -> None:
        """Log an event and deliver it to all listeners."""
        self._logger.info("ledger_event", **event.to_log_dict())

        with self._listeners_lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "ledger_listener_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    exc_info=True,
                )

    def log_failure(
        self,
        operation: str,
        error: Exception,
        details: Optional[dict] = None,
    ) -> None:
        """Log a failed engine operation. The caller re-raises."""
        self._logger.warning(
            "operation_failed",
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            **(details or {}),
        )
