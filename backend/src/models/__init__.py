"""SQLAlchemy Models for the registrar intake API"""

from .base import Base
from .document_request import DocumentRequest
from .document_file import DocumentFile
from .api_key import ApiKey

__all__ = [
    "Base",
    "DocumentRequest",
    "DocumentFile",
    "ApiKey",
]
