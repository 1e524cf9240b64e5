"""FastAPI middleware components."""

from signdesk.api.middleware.exception_handler import setup_exception_handlers
from signdesk.api.middleware.logging import LoggingMiddleware
from signdesk.api.middleware.metrics import MetricsMiddleware

__all__ = [
    "LoggingMiddleware",
    "MetricsMiddleware",
    "setup_exception_handlers",
]
