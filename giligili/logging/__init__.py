"""Application logging utilities."""

from giligili.logging.correlation_filter import CorrelationIdFilter, setup_logging

__all__ = ["CorrelationIdFilter", "setup_logging"]
