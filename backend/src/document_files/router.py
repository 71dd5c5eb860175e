"""Document file API endpoints

Upload, replace, inspect and delete files attached to a document request,
plus the public description of the file type policy.
"""

import logging
from collections import Counter
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from api.responses import no_content, success_response
from auth.dependencies import require_api_key
from config import get_settings
from document_requests.service import DocumentRequestManager
from dependencies import get_request_manager
from domain.documents.errors import UnknownFileType, UploadFailed, ValidationFailed
from domain.documents.file_policy import FileDescriptor, describe_policy
from .schemas import MetadataUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/document-requests/{document_request_id}/files",
    tags=["Document Files"],
    dependencies=[Depends(require_api_key)],
)

file_types_router = APIRouter(
    prefix="/file-types",
    tags=["Document Files"],
    dependencies=[Depends(require_api_key)],
)

Manager = Annotated[DocumentRequestManager, Depends(get_request_manager)]


async def _descriptor(upload: UploadFile) -> FileDescriptor:
    content = await upload.read()
    return FileDescriptor.from_bytes(upload.filename or "", content, upload.content_type)


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_file(
    document_request_id: int,
    manager: Manager,
    file: Annotated[UploadFile, File(...)],
    file_type: Annotated[str, Form(...)],
):
    """Upload one file for a document request.

    Returns 422 with every policy violation if the file is rejected.
    """
    request = manager.get(document_request_id)
    document_file = await manager.files.upload(await _descriptor(file), request, file_type)
    return success_response(
        document_file.to_dict(),
        "File uploaded successfully",
        status.HTTP_201_CREATED,
    )


@router.post("/upload-multiple", status_code=status.HTTP_201_CREATED)
async def upload_multiple_files(
    document_request_id: int,
    manager: Manager,
    file_type: Annotated[str, Form(...)],
    files: Annotated[Optional[List[UploadFile]], File()] = None,
    bracketed_files: Annotated[Optional[List[UploadFile]], File(alias="files[]")] = None,
):
    """Upload several files of one type.

    Files are processed independently. 201 when all succeed, otherwise 200
    with the uploaded files and a per-file error list.
    """
    request = manager.get(document_request_id)

    uploads = list(files or []) + list(bracketed_files or [])
    if not uploads:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="At least one file is required")

    max_files = get_settings().MAX_FILES_PER_UPLOAD
    if len(uploads) > max_files:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Too many files. Maximum {max_files} files per upload.",
        )

    if file_type not in manager.files.policy:
        raise ValidationFailed([UnknownFileType(file_type)])

    uploaded_files = []
    errors = []

    for index, upload in enumerate(uploads):
        try:
            document_file = await manager.files.upload(await _descriptor(upload), request, file_type)
        except ValidationFailed as e:
            errors.append({"file_index": index, "file_name": upload.filename, "errors": e.messages})
            continue
        except UploadFailed as e:
            errors.append({"file_index": index, "file_name": upload.filename, "errors": [e.message]})
            continue
        uploaded_files.append(document_file.to_dict())

    data = {
        "uploaded_files": uploaded_files,
        "total_uploaded": len(uploaded_files),
        "total_files": len(uploads),
    }

    if errors:
        data["errors"] = errors
        message = (
            "Some files uploaded successfully, but some failed" if uploaded_files else "No files were uploaded"
        )
        return success_response(data, message)

    return success_response(data, "All files uploaded successfully", status.HTTP_201_CREATED)


@router.get("")
async def list_files(document_request_id: int, manager: Manager):
    request = manager.get(document_request_id)
    files = [f.to_dict() for f in manager.files.list_for_request(request)]
    return success_response(
        {
            "files": files,
            "total_files": len(files),
            "file_types": dict(Counter(f["file_type"] for f in files)),
        },
        "Files retrieved successfully",
    )


@router.get("/type/{file_type}")
async def list_files_by_type(document_request_id: int, file_type: str, manager: Manager):
    request = manager.get(document_request_id)
    files = [f.to_dict() for f in manager.files.list_for_request(request, file_type=file_type)]
    return success_response(
        {"files": files, "file_type": file_type, "total_files": len(files)},
        "Files retrieved successfully",
    )


@router.get("/{file_id}")
async def get_file_info(document_request_id: int, file_id: int, manager: Manager):
    """File record plus whether its blob is currently present in storage"""
    request = manager.get(document_request_id)
    document_file = manager.files.get_for_request(request, file_id)
    data = document_file.to_dict()
    data["exists_in_storage"] = await manager.files.exists_in_storage(document_file)
    return success_response(data, "File information retrieved successfully")


@router.get("/{file_id}/download-url")
async def get_download_url(
    document_request_id: int,
    file_id: int,
    manager: Manager,
    expires_in: Annotated[Optional[int], Query(ge=1, le=7 * 24 * 60, description="Minutes")] = None,
):
    request = manager.get(document_request_id)
    document_file = manager.files.get_for_request(request, file_id)
    ttl_minutes = expires_in or get_settings().TEMPORARY_URL_TTL_MINUTES
    data = await manager.files.get_temporary_url(document_file, ttl_minutes)
    data["expires_in_minutes"] = ttl_minutes
    return success_response(data, "Download URL generated successfully")


@router.put("/{file_id}")
async def replace_file(
    document_request_id: int,
    file_id: int,
    manager: Manager,
    file: Annotated[UploadFile, File(...)],
):
    """Replace a file's content; the file type and owning request are kept"""
    request = manager.get(document_request_id)
    document_file = manager.files.get_for_request(request, file_id)
    updated = await manager.files.update(await _descriptor(file), document_file)
    return success_response(updated.to_dict(), "File updated successfully")


@router.patch("/{file_id}")
@router.patch("/{file_id}/metadata")
async def update_file_metadata(
    document_request_id: int,
    file_id: int,
    body: MetadataUpdate,
    manager: Manager,
):
    request = manager.get(document_request_id)
    document_file = manager.files.get_for_request(request, file_id)
    updated = manager.files.update_metadata(document_file, body.metadata)
    return success_response(updated.to_dict(), "File metadata updated successfully")


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(document_request_id: int, file_id: int, manager: Manager):
    request = manager.get(document_request_id)
    document_file = manager.files.get_for_request(request, file_id)
    if not await manager.files.delete(document_file):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="File could not be deleted from storage",
        )
    return no_content()


@file_types_router.get("")
async def get_file_types():
    """Allowed file types with their size limits, MIME types and extensions"""
    return success_response(describe_policy(), "Allowed file types retrieved successfully")
