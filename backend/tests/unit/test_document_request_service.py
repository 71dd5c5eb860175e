"""Unit tests for DocumentRequestManager"""

import re
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from config import RequestDeletePolicy
from document_requests.service import DocumentRequestManager
from domain.documents.errors import DocumentRequestNotFound
from domain.documents.file_policy import FileDescriptor
from domain.documents.ports.object_storage_port import StorageError
from domain.documents.request_status import RequestStatus, RequestType
from models.document_file import DocumentFile
from models.document_request import DocumentRequest

TEST_BUCKET = "test-registrar-bucket"
NOW = datetime(2025, 6, 20, 9, 30, 15, tzinfo=timezone.utc)

VALID_FIELDS = {
    "learning_reference_number": "123456789",
    "name_of_student": "John Doe",
    "last_schoolyear_attended": "2024-2025",
    "gender": "male",
    "grade": "12",
    "section": "A",
    "adviser": "Mrs. Smith",
    "contact_number": "09123456789",
    "person_requesting_name": "John Doe",
    "request_for": "SF10",
    "signature_url": "https://example.com/s.jpg",
}


def pdf() -> FileDescriptor:
    return FileDescriptor.from_bytes("transcript.pdf", b"%" * 1024, "application/pdf")


def bucket_keys(s3_client) -> list:
    response = s3_client.list_objects_v2(Bucket=TEST_BUCKET)
    return [obj["Key"] for obj in response.get("Contents", [])]


class TestCreate:

    def test_create_assigns_request_id_and_pending(self, request_manager):
        request = request_manager.create(VALID_FIELDS)

        assert re.match(r"^DOC-\d{4}-[A-Z0-9]{8}$", request.request_id)
        assert request.status == RequestStatus.PENDING
        assert request.processed_at is None
        assert request.last_schoolyear_attended == "2024-2025"

    def test_request_id_uses_clock_year(self, db_session, file_manager):
        manager = DocumentRequestManager(db_session, file_manager, clock=lambda: NOW)
        assert manager.create(VALID_FIELDS).request_id.startswith("DOC-2025-")

    def test_request_ids_unique(self, request_manager):
        ids = {request_manager.create(VALID_FIELDS).request_id for _ in range(10)}
        assert len(ids) == 10


class TestUpdate:

    def test_update_keeps_identity_and_status(self, request_manager, document_request):
        request_id = document_request.request_id
        request_manager.update_status(document_request, RequestStatus.PROCESSING)

        updated = request_manager.update(
            document_request,
            dict(VALID_FIELDS, name_of_student="Jane Doe", request_for="DIPLOMA", request_id="DOC-0000-HACKED00"),
        )

        assert updated.name_of_student == "Jane Doe"
        assert updated.request_for == RequestType.DIPLOMA
        assert updated.request_id == request_id
        assert updated.status == RequestStatus.PROCESSING


class TestUpdateStatus:
    """processed_at follows the completed status"""

    def test_completed_then_pending(self, request_manager, document_request):
        completed = request_manager.update_status(document_request, RequestStatus.COMPLETED, "Released")
        assert completed.processed_at is not None
        assert completed.remarks == "Released"

        reopened = request_manager.update_status(document_request, RequestStatus.PENDING)
        assert reopened.processed_at is None
        assert reopened.remarks is None

    def test_invalid_status_rejected(self, request_manager, document_request):
        with pytest.raises(ValueError):
            request_manager.update_status(document_request, "archived")

    def test_pickup_is_a_valid_status(self, request_manager, document_request):
        assert request_manager.update_status(document_request, "pickup").status == RequestStatus.PICKUP


class TestLookup:

    def test_get_missing(self, request_manager):
        with pytest.raises(DocumentRequestNotFound):
            request_manager.get(12345)

    def test_get_by_request_id(self, request_manager, document_request):
        assert request_manager.get_by_request_id(document_request.request_id).id == document_request.id

    def test_get_by_unknown_request_id(self, request_manager):
        with pytest.raises(DocumentRequestNotFound):
            request_manager.get_by_request_id("DOC-2025-NOPE0000")


class TestListAndStatistics:

    def test_filters_and_search(self, request_manager):
        request_manager.create(VALID_FIELDS)
        request_manager.create(dict(VALID_FIELDS, name_of_student="Maria Clara", request_for="DIPLOMA"))
        rejected = request_manager.create(dict(VALID_FIELDS, learning_reference_number="987654321"))
        request_manager.update_status(rejected, RequestStatus.REJECTED)

        assert request_manager.list_requests().total == 3
        assert request_manager.list_requests(status=RequestStatus.REJECTED).total == 1
        assert request_manager.list_requests(request_type=RequestType.DIPLOMA).total == 1
        assert request_manager.list_requests(search="clara").total == 1
        assert request_manager.list_requests(search="98765").total == 1
        assert request_manager.list_requests(search=rejected.request_id).total == 1

    @pytest.mark.parametrize("term", ["%", "_", "John%Doe", "Jo_n"])
    def test_search_wildcards_match_literally(self, request_manager, term):
        request_manager.create(VALID_FIELDS)

        assert request_manager.list_requests(search=term).total == 0

    def test_search_finds_literal_underscore(self, request_manager):
        request_manager.create(dict(VALID_FIELDS, name_of_student="Ana_Reyes"))
        request_manager.create(dict(VALID_FIELDS, name_of_student="AnaXReyes"))

        assert [r.name_of_student for r in request_manager.list_requests(search="a_r").items] == ["Ana_Reyes"]

    def test_pagination_meta(self, request_manager):
        for _ in range(5):
            request_manager.create(VALID_FIELDS)

        page = request_manager.list_requests(page=2, per_page=2)

        assert len(page.items) == 2
        assert page.meta() == {"current_page": 2, "per_page": 2, "total": 5, "last_page": 3}

    def test_statistics(self, request_manager):
        request_manager.create(VALID_FIELDS)
        second = request_manager.create(dict(VALID_FIELDS, request_for="CERT OF GRAD"))
        request_manager.update_status(second, RequestStatus.PICKUP)

        stats = request_manager.statistics()

        assert stats["total"] == 2
        assert stats["pending"] == 1
        assert stats["pickup"] == 1
        assert stats["completed"] == 0
        assert stats["by_type"]["SF10"] == 1
        assert stats["by_type"]["CERT OF GRAD"] == 1
        assert set(stats["by_type"]) == {"SF10", "ENROLLMENT_CERT", "DIPLOMA", "CAV", "ENG. INST.", "CERT OF GRAD", "OTHERS"}


class TestCascadingDelete:
    """Deleting a request removes its files from storage and the database"""

    @pytest.mark.asyncio
    async def test_delete_removes_rows_and_blobs(self, request_manager, document_request, s3_client, db_session):
        await request_manager.files.upload(pdf(), document_request, "transcript_of_records")
        await request_manager.files.upload(pdf(), document_request, "valid_id")

        assert await request_manager.delete(document_request) is True

        assert bucket_keys(s3_client) == []
        assert db_session.query(DocumentFile).count() == 0
        assert db_session.query(DocumentRequest).count() == 0

    @pytest.mark.asyncio
    async def test_best_effort_deletes_request_despite_storage_failure(
        self, request_manager, document_request, db_session
    ):
        await request_manager.files.upload(pdf(), document_request, "transcript_of_records")

        with patch.object(request_manager.files.storage, "delete_object", side_effect=StorageError("down")):
            assert await request_manager.delete(document_request) is True

        assert db_session.query(DocumentRequest).count() == 0
        assert db_session.query(DocumentFile).count() == 0

    @pytest.mark.asyncio
    async def test_transactional_keeps_request_on_storage_failure(
        self, db_session, file_manager, document_request
    ):
        manager = DocumentRequestManager(db_session, file_manager, delete_policy=RequestDeletePolicy.TRANSACTIONAL)
        await file_manager.upload(pdf(), document_request, "transcript_of_records")

        with patch.object(file_manager.storage, "delete_object", side_effect=StorageError("down")):
            assert await manager.delete(document_request) is False

        assert db_session.query(DocumentRequest).count() == 1
        assert db_session.query(DocumentFile).count() == 1

    @pytest.mark.asyncio
    async def test_transactional_keeps_files_removed_before_failure(
        self, db_session, file_manager, document_request
    ):
        manager = DocumentRequestManager(db_session, file_manager, delete_policy=RequestDeletePolicy.TRANSACTIONAL)
        first = await file_manager.upload(pdf(), document_request, "transcript_of_records")
        second = await file_manager.upload(pdf(), document_request, "valid_id")
        first_id, second_id = first.id, second.id

        with patch.object(file_manager.storage, "delete_object", side_effect=[True, StorageError("down")]):
            assert await manager.delete(document_request) is False

        assert db_session.query(DocumentRequest).count() == 1
        assert [f.id for f in db_session.query(DocumentFile).all()] == [second_id]
        assert db_session.get(DocumentFile, first_id) is None
