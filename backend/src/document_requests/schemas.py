"""Document request API request schemas

Field limits mirror the column sizes in models.document_request.
"""

from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from domain.documents.request_status import Gender, RequestStatus, RequestType


class DocumentRequestBase(BaseModel):
    """Client-supplied fields of a document request"""
    learning_reference_number: str = Field(..., min_length=1, max_length=255)
    name_of_student: str = Field(..., min_length=1, max_length=255)
    last_schoolyear_attended: str = Field(..., min_length=1, max_length=255)
    gender: Gender
    grade: str = Field(..., min_length=1, max_length=50)
    section: str = Field(..., min_length=1, max_length=50)
    major: Optional[str] = Field(None, max_length=255)
    adviser: str = Field(..., min_length=1, max_length=255)
    contact_number: str = Field(..., min_length=1, max_length=20)
    person_requesting_name: str = Field(..., min_length=1, max_length=255)
    request_for: RequestType
    signature_url: str = Field(..., max_length=500, description="URL of the requestor's signature image")

    @field_validator("signature_url")
    @classmethod
    def validate_signature_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("signature_url must be a valid URL")
        return v


class DocumentRequestCreate(DocumentRequestBase):
    """Request body for POST /document-requests"""
    pass


class DocumentRequestUpdate(DocumentRequestBase):
    """Request body for PUT /document-requests/{id} (full replacement)"""
    pass


class StatusUpdate(BaseModel):
    """Request body for PATCH /document-requests/{id}/status"""
    status: RequestStatus
    remarks: Optional[str] = Field(None, max_length=1000)
