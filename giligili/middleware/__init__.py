"""Application middleware."""

from giligili.middleware.correlation import CorrelationIDMiddleware, get_correlation_id

__all__ = ["CorrelationIDMiddleware", "get_correlation_id"]
