"""Global FastAPI dependencies for storage and the entity managers.

This module provides:
- get_storage: Process-wide S3 storage adapter (created on first use)
- get_file_manager: DocumentFileManager bound to the request's session
- get_request_manager: DocumentRequestManager bound to the request's session

Tests replace get_db and get_storage through app.dependency_overrides.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db
from document_files.service import DocumentFileManager
from document_requests.service import DocumentRequestManager
from domain.documents.ports.object_storage_port import ObjectStoragePort
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import load_storage_config, validate_storage_config

logger = logging.getLogger(__name__)

# Storage adapter singleton (initialized once)
_storage_adapter: Optional[S3StorageAdapter] = None


def get_storage() -> ObjectStoragePort:
    """Get or create the storage adapter singleton.

    Raises:
        ValueError: If storage configuration is invalid
        StorageError: If the S3 client cannot be created
    """
    global _storage_adapter

    if _storage_adapter is None:
        config = load_storage_config(get_settings())
        validate_storage_config(config)
        _storage_adapter = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
            public_base_url=config.public_base_url,
        )
        logger.info("Initialized storage adapter")

    return _storage_adapter


def get_file_manager(
    db: Session = Depends(get_db),
    storage: ObjectStoragePort = Depends(get_storage),
) -> DocumentFileManager:
    return DocumentFileManager(db, storage)


def get_request_manager(
    db: Session = Depends(get_db),
    files: DocumentFileManager = Depends(get_file_manager),
) -> DocumentRequestManager:
    return DocumentRequestManager(db, files, delete_policy=get_settings().REQUEST_DELETE_POLICY)
