"""Unit tests for request id and API key generation"""

import re
from datetime import datetime, timezone

import pytest

from domain.documents.errors import StoreUnavailable
from domain.documents.identifiers import generate_api_key, generate_request_id, random_string

REQUEST_ID_PATTERN = re.compile(r"^DOC-\d{4}-[A-Z0-9]{8}$")


def clock_2025():
    return datetime(2025, 6, 20, tzinfo=timezone.utc)


class TestGenerateRequestId:
    """Test generate-and-check request id generation"""

    def test_format(self):
        request_id = generate_request_id(lambda candidate: False, clock=clock_2025)
        assert REQUEST_ID_PATTERN.match(request_id)
        assert request_id.startswith("DOC-2025-")

    def test_retries_until_unused(self):
        seen = []

        def exists(candidate):
            seen.append(candidate)
            return len(seen) < 3

        request_id = generate_request_id(exists, clock=clock_2025)
        assert len(seen) == 3
        assert request_id == seen[-1]

    def test_store_failure_propagates(self):
        def exists(candidate):
            raise StoreUnavailable()

        with pytest.raises(StoreUnavailable):
            generate_request_id(exists, clock=clock_2025)

    def test_generated_ids_are_distinct(self):
        ids = {generate_request_id(lambda candidate: False) for _ in range(200)}
        assert len(ids) == 200


class TestGenerateApiKey:
    """Test API key token generation"""

    def test_format(self):
        key = generate_api_key()
        assert re.match(r"^sk-[A-Za-z0-9]{32}$", key)

    def test_custom_prefix(self):
        assert generate_api_key("rk-").startswith("rk-")

    def test_random_string_alphabet(self):
        assert set(random_string(64, "AB")) <= {"A", "B"}
        assert len(random_string(8)) == 8
