"""Unit tests for document request status rules"""

from datetime import datetime, timezone

import pytest

from domain.documents.request_status import (
    RequestStatus,
    RequestType,
    resolve_processed_at,
    request_type_values,
    status_values,
)

NOW = datetime(2025, 6, 20, 9, 30, tzinfo=timezone.utc)


class TestStatusValues:

    def test_five_statuses(self):
        assert status_values() == ["pending", "processing", "pickup", "completed", "rejected"]

    def test_seven_request_types(self):
        assert request_type_values() == [
            "SF10", "ENROLLMENT_CERT", "DIPLOMA", "CAV", "ENG. INST.", "CERT OF GRAD", "OTHERS",
        ]

    def test_request_type_from_value_with_spaces(self):
        assert RequestType("CERT OF GRAD") is RequestType.CERT_OF_GRAD


class TestResolveProcessedAt:
    """processed_at is set exactly when a request is completed"""

    def test_completed_sets_timestamp(self):
        assert resolve_processed_at(RequestStatus.COMPLETED, NOW) == NOW

    @pytest.mark.parametrize("status", [
        RequestStatus.PENDING,
        RequestStatus.PROCESSING,
        RequestStatus.PICKUP,
        RequestStatus.REJECTED,
    ])
    def test_other_statuses_clear_timestamp(self, status):
        assert resolve_processed_at(status, NOW) is None
