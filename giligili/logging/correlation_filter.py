"""Stamp log records with the correlation ID of the current request."""

import logging

from giligili.middleware.correlation import get_correlation_id

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpcore",
    "httpx",
    "asyncio",
    "watchfiles",
)


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")

    # Filters on a logger don't apply to records from child loggers, so the
    # filter goes on the handlers
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
