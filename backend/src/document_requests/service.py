"""Document request manager

Creates, updates, lists and deletes document requests. Deleting a request
is orchestrated here: each owned file is removed through the file manager
(blob first, then row) before the request row goes.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import RequestDeletePolicy
from document_files.service import DocumentFileManager
from domain.documents.errors import DocumentRequestNotFound, StoreUnavailable
from domain.documents.identifiers import Clock, generate_request_id, utc_now
from domain.documents.request_status import RequestStatus, RequestType, resolve_processed_at
from models.document_request import DocumentRequest
from observability.metrics import document_request_status_changes_total, document_requests_created_total

logger = logging.getLogger(__name__)

# Client-supplied fields accepted on create and full update
EDITABLE_FIELDS = (
    "learning_reference_number",
    "name_of_student",
    "last_schoolyear_attended",
    "gender",
    "grade",
    "section",
    "major",
    "adviser",
    "contact_number",
    "person_requesting_name",
    "request_for",
    "signature_url",
)


def _escape_like(value: str) -> str:
    """Match %, _ and the escape character literally in LIKE patterns"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class Page:
    """One page of a listing"""
    items: List[DocumentRequest]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    def meta(self) -> Dict[str, int]:
        return {
            "current_page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "last_page": self.last_page,
        }


class DocumentRequestManager:
    """Lifecycle operations on document requests.

    Args:
        db: SQLAlchemy session
        files: File manager used for cascading deletes
        clock: Time source for request ids and processed_at
        delete_policy: Reaction to file deletion failures on request delete
    """

    def __init__(
        self,
        db: Session,
        files: DocumentFileManager,
        clock: Clock = utc_now,
        delete_policy: RequestDeletePolicy = RequestDeletePolicy.BEST_EFFORT,
    ):
        self.db = db
        self.files = files
        self.clock = clock
        self.delete_policy = delete_policy

    def _request_id_exists(self, candidate: str) -> bool:
        try:
            return (
                self.db.query(DocumentRequest.id)
                .filter(DocumentRequest.request_id == candidate)
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            logger.error(f"Request id lookup failed: {e}")
            raise StoreUnavailable()

    def create(self, fields: Mapping[str, Any]) -> DocumentRequest:
        """Create a pending request with a freshly generated request_id"""
        request = DocumentRequest(
            **{name: fields.get(name) for name in EDITABLE_FIELDS},
            request_id=generate_request_id(self._request_id_exists, clock=self.clock),
            status=RequestStatus.PENDING,
        )
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)

        document_requests_created_total.inc()
        logger.info(
            f"Created document request: id={request.id}, request_id={request.request_id}",
            extra={"document_request_id": request.id},
        )
        return request

    def update(self, request: DocumentRequest, fields: Mapping[str, Any]) -> DocumentRequest:
        """Overwrite the client-editable fields.

        request_id, status and processed_at are not client fields and are
        left untouched.
        """
        for name in EDITABLE_FIELDS:
            if name in fields:
                setattr(request, name, fields[name])
        self.db.commit()
        self.db.refresh(request)
        return request

    def update_status(
        self,
        request: DocumentRequest,
        new_status: RequestStatus,
        remarks: Optional[str] = None,
    ) -> DocumentRequest:
        """Move a request to new_status.

        processed_at is stamped when the request becomes completed and
        cleared for every other status. remarks is always overwritten.
        """
        new_status = RequestStatus(new_status)
        old_status = request.status

        request.status = new_status
        request.remarks = remarks
        request.processed_at = resolve_processed_at(new_status, self.clock())
        self.db.commit()
        self.db.refresh(request)

        document_request_status_changes_total.labels(status=new_status.value).inc()
        logger.info(
            f"Document request status changed: id={request.id}, "
            f"{getattr(old_status, 'value', old_status)} -> {new_status.value}",
            extra={"document_request_id": request.id},
        )
        return request

    async def delete(self, request: DocumentRequest) -> bool:
        """Delete a request together with its files.

        Returns:
            bool: True if the request row was deleted. Under the
            transactional policy, False when a file could not be removed;
            the request and its remaining files are kept in that case.

        Files are removed one at a time. Under the transactional policy the
        files removed before the failing one stay removed: the request row
        is preserved, the file set is not rolled back.
        """
        owned_files = list(request.files)
        failed = []

        for document_file in owned_files:
            if await self.files.delete(document_file):
                continue
            if self.delete_policy == RequestDeletePolicy.TRANSACTIONAL:
                logger.error(
                    f"Aborting deletion of document request {request.request_id}: "
                    f"file {document_file.id} could not be removed"
                )
                return False
            failed.append(document_file.file_name)

        if failed:
            logger.warning(
                f"Deleting document request {request.request_id} with "
                f"{len(failed)} file(s) left in storage: {failed}"
            )

        request_id = request.request_id
        self.db.delete(request)
        self.db.commit()
        logger.info(f"Deleted document request: request_id={request_id}")
        return True

    def get(self, id: int) -> DocumentRequest:
        request = self.db.get(DocumentRequest, id)
        if request is None:
            raise DocumentRequestNotFound()
        return request

    def get_by_request_id(self, request_id: str) -> DocumentRequest:
        request = self.db.query(DocumentRequest).filter(DocumentRequest.request_id == request_id).first()
        if request is None:
            raise DocumentRequestNotFound()
        return request

    def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        request_type: Optional[RequestType] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Page:
        """Filtered listing, newest first.

        search matches the student name, LRN or request id (substring).
        """
        query = self.db.query(DocumentRequest)
        if status is not None:
            query = query.filter(DocumentRequest.status == RequestStatus(status))
        if request_type is not None:
            query = query.filter(DocumentRequest.request_for == RequestType(request_type))
        if search:
            pattern = f"%{_escape_like(search)}%"
            query = query.filter(
                or_(
                    DocumentRequest.name_of_student.ilike(pattern, escape="\\"),
                    DocumentRequest.learning_reference_number.ilike(pattern, escape="\\"),
                    DocumentRequest.request_id.ilike(pattern, escape="\\"),
                )
            )

        total = query.count()
        items = (
            query.order_by(DocumentRequest.created_at.desc(), DocumentRequest.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return Page(items=items, total=total, page=page, per_page=per_page)

    def statistics(self) -> Dict[str, Any]:
        """Totals per status and per requested document type"""
        by_status = dict(
            self.db.query(DocumentRequest.status, func.count(DocumentRequest.id))
            .group_by(DocumentRequest.status)
            .all()
        )
        by_type = dict(
            self.db.query(DocumentRequest.request_for, func.count(DocumentRequest.id))
            .group_by(DocumentRequest.request_for)
            .all()
        )

        stats: Dict[str, Any] = {"total": sum(by_status.values())}
        for status in RequestStatus:
            stats[status.value] = by_status.get(status, 0)
        stats["by_type"] = {
            request_type.value: by_type.get(request_type, 0) for request_type in RequestType
        }
        return stats
