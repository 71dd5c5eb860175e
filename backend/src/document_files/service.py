"""Document file manager

Keeps document_files rows and blob store objects consistent:

- a row only exists after the provider confirmed the blob write
- a row is only removed after its blob is gone (or was already absent)
- a replacement is validated before anything is removed

Storage calls are the only awaited operations; database work happens on
the caller's synchronous Session.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.documents.errors import (
    BlobUnavailable,
    DocumentFileNotFound,
    FileValidationError,
    UploadFailed,
    ValidationFailed,
)
from domain.documents.file_policy import (
    DEFAULT_FILE_POLICY,
    FileDescriptor,
    FileTypePolicy,
    build_storage_key,
    validate_file,
)
from domain.documents.identifiers import Clock, utc_now
from domain.documents.ports.object_storage_port import ObjectStoragePort, StorageError
from models.document_file import DocumentFile
from models.document_request import DocumentRequest
from observability.metrics import record_file_deletion, record_file_upload

logger = logging.getLogger(__name__)

UPLOAD_METHOD = "api"
UNKNOWN_FILE_TYPE_LABEL = "unknown"


class DocumentFileManager:
    """Upload, replace, delete and look up files owned by document requests.

    Args:
        db: SQLAlchemy session (commits are issued here)
        storage: Object storage port
        clock: Time source for storage keys and upload metadata
        policy: File type policy table
    """

    def __init__(
        self,
        db: Session,
        storage: ObjectStoragePort,
        clock: Clock = utc_now,
        policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY,
    ):
        self.db = db
        self.storage = storage
        self.clock = clock
        self.policy = policy

    def validate(self, descriptor: FileDescriptor, declared_type: str) -> List[FileValidationError]:
        return validate_file(descriptor, declared_type, self.policy)

    def _metric_label(self, declared_type: str) -> str:
        """Client-supplied types outside the policy share one label"""
        return declared_type if declared_type in self.policy else UNKNOWN_FILE_TYPE_LABEL

    async def upload(
        self,
        descriptor: FileDescriptor,
        request: DocumentRequest,
        declared_type: str,
    ) -> DocumentFile:
        """Validate, store and record one file for a document request.

        Raises:
            ValidationFailed: File breaks the policy (nothing is written)
            UploadFailed: Blob store rejected the write (no row is created)
            SQLAlchemyError: Row could not be committed (blob is removed again)
        """
        errors = self.validate(descriptor, declared_type)
        if errors:
            record_file_upload(self._metric_label(declared_type), "rejected")
            raise ValidationFailed(errors)

        storage_key = build_storage_key(
            descriptor,
            declared_type,
            request.request_id,
            request.person_requesting_name,
            clock=self.clock,
            policy=self.policy,
        )

        try:
            await self.storage.put_object(
                storage_key,
                descriptor.content,
                descriptor.mime_type,
                metadata={"request_id": request.request_id, "file_type": declared_type},
            )
        except StorageError as e:
            record_file_upload(declared_type, "failed")
            logger.error(
                f"Blob write failed: request_id={request.request_id}, "
                f"file_type={declared_type}, storage_key={storage_key}, error={e}"
            )
            raise UploadFailed(f"Failed to upload file: {descriptor.original_name}")

        document_file = DocumentFile(
            document_request_id=request.id,
            file_type=declared_type,
            original_name=descriptor.original_name,
            file_name=storage_key,
            file_path=self.storage.public_url(storage_key),
            mime_type=descriptor.mime_type,
            file_size=descriptor.size,
            file_metadata={
                "uploaded_at": self.clock().isoformat(),
                "upload_method": UPLOAD_METHOD,
                "file_extension": descriptor.extension,
            },
        )

        try:
            self.db.add(document_file)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Failed to record uploaded file, removing blob: storage_key={storage_key}")
            await self._discard_blob(storage_key)
            raise

        self.db.refresh(document_file)
        record_file_upload(declared_type, "success")
        logger.info(
            f"Stored file: id={document_file.id}, request_id={request.request_id}, "
            f"file_type={declared_type}, size={descriptor.size}"
        )
        return document_file

    async def update(self, descriptor: FileDescriptor, existing: DocumentFile) -> DocumentFile:
        """Replace a file's content, keeping its type and owning request.

        The replacement is validated before the old file is touched, so a
        rejected replacement leaves the existing file in place. Removing the
        old file is best-effort.
        """
        errors = self.validate(descriptor, existing.file_type)
        if errors:
            record_file_upload(existing.file_type, "rejected")
            raise ValidationFailed(errors)

        request = existing.document_request
        declared_type = existing.file_type

        if not await self.delete(existing):
            logger.warning(
                f"Old file could not be removed during replacement: id={existing.id}, "
                f"storage_key={existing.file_name}"
            )

        return await self.upload(descriptor, request, declared_type)

    def update_metadata(self, document_file: DocumentFile, metadata: Dict[str, Any]) -> DocumentFile:
        """Shallow-merge metadata into the stored map"""
        merged = dict(document_file.file_metadata or {})
        merged.update(metadata)
        # Reassign so the JSON column is flagged dirty
        document_file.file_metadata = merged
        self.db.commit()
        self.db.refresh(document_file)
        return document_file

    async def delete(self, document_file: DocumentFile) -> bool:
        """Delete a file's blob, then its row.

        Returns:
            bool: True if the row was removed. False if the blob store
            failed; the row is kept so the blob can still be found.
        """
        storage_key = document_file.file_name
        try:
            deleted = await self.storage.delete_object(storage_key)
        except StorageError as e:
            record_file_deletion("failed")
            logger.error(f"Blob delete failed: id={document_file.id}, storage_key={storage_key}, error={e}")
            return False

        if not deleted:
            logger.warning(f"Blob already absent, removing record: id={document_file.id}, storage_key={storage_key}")

        self.db.delete(document_file)
        self.db.commit()
        record_file_deletion("success")
        logger.info(f"Deleted file: id={document_file.id}, storage_key={storage_key}")
        return True

    async def get_temporary_url(self, document_file: DocumentFile, ttl_minutes: int = 60) -> Dict[str, Any]:
        """Time-limited download URL for a file.

        Raises:
            BlobUnavailable: The blob behind the record is missing
        """
        try:
            url = await self.storage.generate_presigned_url(
                document_file.file_name,
                expires_in_seconds=ttl_minutes * 60,
            )
        except FileNotFoundError:
            raise BlobUnavailable()

        return {
            "url": url,
            "expires_at": (self.clock() + timedelta(minutes=ttl_minutes)).isoformat(),
        }

    async def exists_in_storage(self, document_file: DocumentFile) -> bool:
        return await self.storage.object_exists(document_file.file_name)

    def list_for_request(self, request: DocumentRequest, file_type: Optional[str] = None) -> List[DocumentFile]:
        query = self.db.query(DocumentFile).filter(DocumentFile.document_request_id == request.id)
        if file_type is not None:
            query = query.filter(DocumentFile.file_type == file_type)
        return query.order_by(DocumentFile.id).all()

    def get_for_request(self, request: DocumentRequest, file_id: int) -> DocumentFile:
        document_file = (
            self.db.query(DocumentFile)
            .filter(DocumentFile.id == file_id, DocumentFile.document_request_id == request.id)
            .first()
        )
        if document_file is None:
            raise DocumentFileNotFound()
        return document_file

    async def _discard_blob(self, storage_key: str) -> None:
        try:
            await self.storage.delete_object(storage_key)
        except StorageError as e:
            logger.error(f"Orphaned blob left behind: storage_key={storage_key}, error={e}")
