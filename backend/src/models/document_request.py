"""DocumentRequest SQLAlchemy model

A request for an academic document submitted by an external client.
Tracks the student, the requestor, the requested document and the
registrar workflow status. Owns the files uploaded for it.
"""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship

from domain.documents.request_status import Gender, RequestStatus, RequestType
from .base import Base, TimestampMixin, isoformat


def _enum_values(enum_cls):
    """Persist enum values ('pending'), not member names ('PENDING')"""
    return [member.value for member in enum_cls]


class DocumentRequest(TimestampMixin, Base):
    """Document request submitted through the intake API.

    request_id is the business identifier shown to requestors
    (DOC-{year}-{8 chars}); id is the surrogate key used in URLs.
    processed_at is only set while the request is completed.
    """
    __tablename__ = "document_requests"
    __table_args__ = (
        Index("ix_document_requests_status", "status"),
        Index("ix_document_requests_request_for", "request_for"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(32), nullable=False, unique=True, index=True)

    # Student
    learning_reference_number = Column(String(255), nullable=False)
    name_of_student = Column(String(255), nullable=False)
    last_schoolyear_attended = Column(String(255), nullable=False)
    gender = Column(
        SQLEnum(Gender, name="gender", native_enum=False, values_callable=_enum_values, length=10),
        nullable=False,
    )
    grade = Column(String(50), nullable=False)
    section = Column(String(50), nullable=False)
    major = Column(String(255), nullable=True)
    adviser = Column(String(255), nullable=False)
    contact_number = Column(String(20), nullable=False)

    # Requestor
    person_requesting_name = Column(String(255), nullable=False)
    request_for = Column(
        SQLEnum(RequestType, name="requesttype", native_enum=False, values_callable=_enum_values, length=20),
        nullable=False,
    )
    signature_url = Column(String(500), nullable=False)

    # Workflow
    status = Column(
        SQLEnum(RequestStatus, name="requeststatus", native_enum=False, values_callable=_enum_values, length=20),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    remarks = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    files = relationship(
        "DocumentFile",
        back_populates="document_request",
        cascade="all, delete-orphan",
        order_by="DocumentFile.id",
    )

    @property
    def signature_file(self):
        """Uploaded signature file, if any"""
        return next((f for f in self.files if f.file_type == "signature"), None)

    @property
    def resolved_signature_url(self) -> str:
        """Prefer the uploaded signature over the submitted URL"""
        signature = self.signature_file
        if signature is not None and signature.file_path:
            return signature.file_path
        return self.signature_url or ""

    def to_dict(self):
        """Convert document request to dictionary representation"""
        return {
            "id": self.id,
            "request_id": self.request_id,
            "learning_reference_number": self.learning_reference_number,
            "name_of_student": self.name_of_student,
            "last_schoolyear_attended": self.last_schoolyear_attended,
            "gender": self.gender.value if isinstance(self.gender, enum.Enum) else self.gender,
            "grade": self.grade,
            "section": self.section,
            "major": self.major,
            "adviser": self.adviser,
            "contact_number": self.contact_number,
            "person_requesting_name": self.person_requesting_name,
            "request_for": self.request_for.value if isinstance(self.request_for, enum.Enum) else self.request_for,
            "signature_url": self.resolved_signature_url,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
            "remarks": self.remarks,
            "processed_at": isoformat(self.processed_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<DocumentRequest(id={self.id}, request_id={self.request_id}, status={self.status})>"
