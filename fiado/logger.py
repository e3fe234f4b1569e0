"""
Structured Logging

DESIGN DECISION: All components log through structlog with JSON output,
keyed by event name ("transaction_added", "customer_deleted", ...) rather
than free-text sentences. Log lines can then be filtered by event and
by customer id without parsing prose.

There is no persisted audit trail. These logs are the only record of
what the ledger did, and they are operational, not financial, history.
"""

import logging
import sys

import structlog


_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog over stdlib logging.

    Safe to call more than once; later calls only change the level.
    """
    global _configured
    log_level = getattr(logging, level.upper(), logging.INFO)
    if _configured:
        logging.getLogger().setLevel(log_level)
        return

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
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
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named logger, configuring logging on first use."""
    configure_logging()
    return structlog.get_logger(name)
