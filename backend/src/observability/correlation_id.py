"""Correlation ID management for request tracing.

Every HTTP request gets a correlation ID (taken from the X-Request-ID header
or freshly generated) that is attached to all log records written while the
request is handled. Not to be confused with DocumentRequest.request_id.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

CORRELATION_ID_HEADER = "X-Request-ID"

# Context variable for the correlation id (async-safe)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new unique correlation ID (UUID v4)"""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Current correlation ID, or "no-request-id" outside a request"""
    return correlation_id_var.get() or "no-request-id"


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)
