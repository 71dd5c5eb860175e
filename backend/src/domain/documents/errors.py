"""Error taxonomy for the registrar intake core

Every error carries the HTTP status the API layer renders it with, so the
exception handlers in main.py stay a single mapping.
"""

from typing import List, Optional


class RegistrarError(Exception):
    """Base class for all expected application errors"""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Validation (422)
# ---------------------------------------------------------------------------

class FileValidationError(RegistrarError):
    """A single file policy violation"""
    status_code = 422
    code = "file_invalid"


class UnknownFileType(FileValidationError):
    code = "unknown_file_type"

    def __init__(self, file_type: str):
        self.file_type = file_type
        super().__init__(f"Invalid file type: {file_type}")


class FileTooLarge(FileValidationError):
    code = "file_too_large"

    def __init__(self, size: int, max_size: int, max_size_formatted: str):
        self.size = size
        self.max_size = max_size
        super().__init__(f"File size exceeds maximum allowed size of {max_size_formatted}")


class DisallowedMimeType(FileValidationError):
    code = "disallowed_mime_type"

    def __init__(self, mime_type: str, allowed: List[str]):
        self.mime_type = mime_type
        self.allowed = allowed
        super().__init__(f"File type not allowed. Allowed types: {', '.join(allowed)}")


class ValidationFailed(RegistrarError):
    """Raised with the full list of policy violations for one file"""
    status_code = 422
    default_message = "File validation failed"

    def __init__(self, errors: List[FileValidationError], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message)

    @property
    def messages(self) -> List[str]:
        return [error.message for error in self.errors]


# ---------------------------------------------------------------------------
# Not found (404)
# ---------------------------------------------------------------------------

class NotFoundError(RegistrarError):
    status_code = 404
    default_message = "Resource not found"


class DocumentRequestNotFound(NotFoundError):
    default_message = "Document request not found"


class DocumentFileNotFound(NotFoundError):
    default_message = "File not found"


class BlobUnavailable(NotFoundError):
    """The stored object behind a file record does not exist"""
    default_message = "File is not available in storage"


# ---------------------------------------------------------------------------
# Authentication (401)
# ---------------------------------------------------------------------------

class AuthError(RegistrarError):
    status_code = 401
    default_message = "Unauthorized"


class MissingCredential(AuthError):
    default_message = "API key is required"


class InvalidOrExpired(AuthError):
    default_message = "Invalid or expired API key"


# ---------------------------------------------------------------------------
# Infrastructure (500)
# ---------------------------------------------------------------------------

class UploadFailed(RegistrarError):
    default_message = "Failed to upload file"


class StoreUnavailable(RegistrarError):
    default_message = "Data store is unavailable"


class RequestDeletionFailed(RegistrarError):
    default_message = "Document request could not be deleted because some files could not be removed"
