"""Document request API endpoints

Intake, lookup, listing, workflow status changes and cascading deletion of
document requests. Every route requires an API key.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from api.responses import no_content, success_response
from auth.dependencies import require_api_key
from config import get_settings
from dependencies import get_request_manager
from domain.documents.errors import RequestDeletionFailed
from domain.documents.request_status import RequestStatus, RequestType
from models.document_request import DocumentRequest
from .schemas import DocumentRequestCreate, DocumentRequestUpdate, StatusUpdate
from .service import DocumentRequestManager

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/document-requests",
    tags=["Document Requests"],
    dependencies=[Depends(require_api_key)],
)

Manager = Annotated[DocumentRequestManager, Depends(get_request_manager)]


def _serialize(request: DocumentRequest, include_files: bool = False) -> dict:
    data = request.to_dict()
    if include_files:
        data["files"] = [f.to_dict() for f in request.files]
    return data


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_document_request(body: DocumentRequestCreate, manager: Manager):
    """Submit a new document request; it starts out pending"""
    request = manager.create(body.model_dump())
    return success_response(
        _serialize(request),
        "Document request created successfully",
        status.HTTP_201_CREATED,
    )


@router.get("")
async def list_document_requests(
    manager: Manager,
    status_filter: Annotated[Optional[RequestStatus], Query(alias="status")] = None,
    request_type: Optional[RequestType] = None,
    search: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[Optional[int], Query(ge=1)] = None,
):
    """Paginated listing, newest first"""
    settings = get_settings()
    per_page = min(per_page or settings.DEFAULT_PER_PAGE, settings.MAX_PER_PAGE)

    result = manager.list_requests(
        status=status_filter,
        request_type=request_type,
        search=search,
        page=page,
        per_page=per_page,
    )
    return success_response(
        {"items": [_serialize(r) for r in result.items], "meta": result.meta()},
        "Document requests retrieved successfully",
    )


@router.get("/statistics")
async def get_statistics(manager: Manager):
    return success_response(manager.statistics(), "Statistics retrieved successfully")


@router.get("/request/{request_id}")
async def get_by_request_id(request_id: str, manager: Manager):
    request = manager.get_by_request_id(request_id)
    return success_response(_serialize(request, include_files=True), "Document request retrieved successfully")


@router.get("/{document_request_id}")
async def get_document_request(document_request_id: int, manager: Manager):
    request = manager.get(document_request_id)
    return success_response(_serialize(request, include_files=True), "Document request retrieved successfully")


@router.put("/{document_request_id}")
async def update_document_request(document_request_id: int, body: DocumentRequestUpdate, manager: Manager):
    request = manager.update(manager.get(document_request_id), body.model_dump())
    return success_response(_serialize(request), "Document request updated successfully")


@router.patch("/{document_request_id}/status")
async def update_document_request_status(document_request_id: int, body: StatusUpdate, manager: Manager):
    """Change the workflow status; completing a request stamps processed_at"""
    request = manager.update_status(manager.get(document_request_id), body.status, body.remarks)
    return success_response(_serialize(request), "Document request status updated successfully")


@router.delete("/{document_request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document_request(document_request_id: int, manager: Manager):
    """Delete a request and every file it owns"""
    request = manager.get(document_request_id)
    if not await manager.delete(request):
        raise RequestDeletionFailed()
    return no_content()
