"""DocumentFile SQLAlchemy model

Metadata row for one object in the blob store. file_name is the storage
key, file_path the public URL resolved at upload time.
"""

from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship

from domain.documents.file_policy import format_bytes
from .base import Base, TimestampMixin, PortableJSONB, isoformat


class DocumentFile(TimestampMixin, Base):
    """File attached to a document request"""
    __tablename__ = "document_files"
    __table_args__ = (
        Index("ix_document_files_request_type", "document_request_id", "file_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_request_id = Column(
        Integer,
        ForeignKey("document_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_type = Column(String(50), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_name = Column(String(500), nullable=False, unique=True)
    file_path = Column(String(1000), nullable=False)
    mime_type = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    # 'metadata' is reserved on declarative classes
    file_metadata = Column("metadata", PortableJSONB, nullable=True)

    # Relationships
    document_request = relationship("DocumentRequest", back_populates="files")

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.file_size or 0)

    def to_dict(self):
        """Convert document file to dictionary representation"""
        return {
            "id": self.id,
            "document_request_id": self.document_request_id,
            "file_type": self.file_type,
            "original_name": self.original_name,
            "file_name": self.file_name,
            "file_path": self.file_path,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "formatted_size": self.formatted_size,
            "metadata": dict(self.file_metadata or {}),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<DocumentFile(id={self.id}, file_type={self.file_type}, file_name={self.file_name})>"
