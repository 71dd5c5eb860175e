"""Observability module.

Provides structured logging, correlation IDs, metrics and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    file_uploads_total,
    file_deletions_total,
    api_key_auth_total,
    document_requests_created_total,
    document_request_status_changes_total,
)
from .correlation_id import correlation_id_var, get_correlation_id, set_correlation_id, generate_correlation_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "file_uploads_total",
    "file_deletions_total",
    "api_key_auth_total",
    "document_requests_created_total",
    "document_request_status_changes_total",
    # Correlation ID
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    "generate_correlation_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
