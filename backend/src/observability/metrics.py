"""Prometheus metrics for the registrar intake API.

Defines operational counters for uploads, deletions, authentication and the
request workflow. Exposed at /metrics.
"""

from prometheus_client import Counter

# File metrics
file_uploads_total = Counter(
    "registrar_file_uploads_total",
    "Total file upload attempts",
    ["file_type", "outcome"]  # outcome: success|rejected|failed
)

file_deletions_total = Counter(
    "registrar_file_deletions_total",
    "Total file deletion attempts",
    ["outcome"]  # outcome: success|failed
)

# Authentication metrics
api_key_auth_total = Counter(
    "registrar_api_key_auth_total",
    "Total API key authentication attempts",
    ["outcome"]  # outcome: success|missing|invalid
)

# Workflow metrics
document_requests_created_total = Counter(
    "registrar_document_requests_created_total",
    "Total document requests created"
)

document_request_status_changes_total = Counter(
    "registrar_document_request_status_changes_total",
    "Total document request status changes",
    ["status"]
)


def record_file_upload(file_type: str, outcome: str) -> None:
    file_uploads_total.labels(file_type=file_type, outcome=outcome).inc()


def record_file_deletion(outcome: str) -> None:
    file_deletions_total.labels(outcome=outcome).inc()


def record_api_key_auth(outcome: str) -> None:
    api_key_auth_total.labels(outcome=outcome).inc()
