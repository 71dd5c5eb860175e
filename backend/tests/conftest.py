"""Pytest fixtures for the registrar intake API.

Provides reusable test fixtures for:
- In-memory SQLite database session per test
- moto-backed S3 storage adapter
- Entity managers wired to both
- API keys and an authenticated FastAPI TestClient

Usage:
    def test_list_requests(client, document_request):
        response = client.get("/v1/document-requests")
        assert response.status_code == 200
"""

import sys
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "false")
os.environ["S3_ENDPOINT_URL"] = ""
os.environ["S3_BUCKET_NAME"] = "test-registrar-bucket"
os.environ["S3_REGION"] = "us-east-1"
os.environ["S3_ACCESS_KEY_ID"] = "testing"
os.environ["S3_SECRET_ACCESS_KEY"] = "testing"
os.environ.pop("S3_PUBLIC_URL", None)

# moto credentials
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from config import RequestDeletePolicy
from models import Base, ApiKey
from models.document_request import DocumentRequest
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from document_files.service import DocumentFileManager
from document_requests.service import DocumentRequestManager
from database import get_db as database_get_db
from dependencies import get_storage as dependencies_get_storage


TEST_BUCKET = "test-registrar-bucket"
TEST_REGION = "us-east-1"
TEST_API_KEY = "sk-TestKey0123456789abcdefghijklmnop"
FIXED_NOW = datetime(2025, 6, 20, 9, 30, 15, tzinfo=timezone.utc)

VALID_REQUEST = {
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


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def s3_client():
    """Mocked S3 with the test bucket created"""
    with mock_aws():
        client = boto3.client("s3", region_name=TEST_REGION)
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture(scope="function")
def storage(s3_client) -> S3StorageAdapter:
    """S3StorageAdapter against the mocked bucket"""
    return S3StorageAdapter(
        endpoint_url=None,
        access_key="testing",
        secret_key="testing",
        bucket_name=TEST_BUCKET,
        region=TEST_REGION,
    )


@pytest.fixture(scope="function")
def file_manager(db_session: Session, storage: S3StorageAdapter) -> DocumentFileManager:
    return DocumentFileManager(db_session, storage)


@pytest.fixture(scope="function")
def request_manager(db_session: Session, file_manager: DocumentFileManager) -> DocumentRequestManager:
    return DocumentRequestManager(db_session, file_manager, delete_policy=RequestDeletePolicy.BEST_EFFORT)


@pytest.fixture(scope="function")
def document_request(request_manager: DocumentRequestManager) -> DocumentRequest:
    """A pending document request"""
    return request_manager.create(dict(VALID_REQUEST))


@pytest.fixture(scope="function")
def api_key(db_session: Session) -> ApiKey:
    """An active, non-expiring API key"""
    key = ApiKey(name="Test Client", key=TEST_API_KEY, is_active=True)
    db_session.add(key)
    db_session.commit()
    db_session.refresh(key)
    return key


@pytest.fixture(scope="function")
def anonymous_client(db_session: Session, storage: S3StorageAdapter):
    """TestClient without credentials, wired to the test database and bucket."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[dependencies_get_storage] = lambda: storage

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(anonymous_client: TestClient, api_key: ApiKey):
    """TestClient sending a valid X-API-Key header."""
    anonymous_client.headers.update({"X-API-Key": api_key.key})
    return anonymous_client
