"""File validation and storage naming for document request uploads

Each declared file type maps to a policy (maximum size, allowed MIME types,
destination folder). Validation collects every violation instead of stopping
at the first one, and naming derives a storage key that can be traced back
to the request, the requestor and the file type from the key alone.

Everything in this module is pure: no storage or database access.
"""

import mimetypes
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import (
    DisallowedMimeType,
    FileTooLarge,
    FileValidationError,
    UnknownFileType,
)
from .identifiers import Clock, random_string, utc_now

MB = 1024 * 1024

MIME_PDF = "application/pdf"
MIME_JPEG = "image/jpeg"
MIME_PNG = "image/png"
MIME_GIF = "image/gif"
MIME_DOC = "application/msword"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Extension advertised to clients for each MIME type
MIME_TO_EXTENSION: Dict[str, str] = {
    MIME_PDF: "pdf",
    MIME_JPEG: "jpg",
    MIME_PNG: "png",
    MIME_GIF: "gif",
    MIME_DOC: "doc",
    MIME_DOCX: "docx",
}

SIGNATURES_FOLDER = "signatures"
SUPPORTING_DOCUMENTS_FOLDER = "supporting_documents"

REQUESTOR_NAME_MAX_LENGTH = 50
RANDOM_SUFFIX_LENGTH = 8
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


@dataclass(frozen=True)
class FileTypePolicy:
    """Upload rules for one declared file type"""
    max_size: int
    allowed_mime_types: Tuple[str, ...]
    folder: str

    def allowed_mime_list(self) -> List[str]:
        """Allowed MIME types in declaration order for messages and responses"""
        return list(self.allowed_mime_types)


@dataclass
class FileDescriptor:
    """An uploaded file as seen by the validation pipeline

    Attributes:
        original_name: Client-side filename (used for the extension)
        mime_type: Declared MIME type
        size: Size in bytes
        content: File bytes (empty when only validating metadata)
    """
    original_name: str
    mime_type: str
    size: int
    content: bytes = field(default=b"", repr=False)

    @classmethod
    def from_bytes(cls, original_name: str, content: bytes, mime_type: Optional[str] = None) -> "FileDescriptor":
        """Build a descriptor, guessing the MIME type from the name if none was sent"""
        return cls(
            original_name=original_name,
            mime_type=resolve_mime_type(original_name, mime_type),
            size=len(content),
            content=content,
        )

    @property
    def extension(self) -> str:
        """Extension of the original filename without the dot ('' if none)"""
        return os.path.splitext(self.original_name or "")[1].lstrip(".")


_IMAGE_OR_PDF = (MIME_PDF, MIME_JPEG, MIME_PNG)

DEFAULT_FILE_POLICY: Mapping[str, FileTypePolicy] = {
    "signature": FileTypePolicy(
        max_size=5 * MB,
        allowed_mime_types=(MIME_JPEG, MIME_PNG, MIME_GIF, MIME_PDF),
        folder=SIGNATURES_FOLDER,
    ),
    "affidavit_of_loss": FileTypePolicy(
        max_size=10 * MB,
        allowed_mime_types=_IMAGE_OR_PDF,
        folder=SUPPORTING_DOCUMENTS_FOLDER,
    ),
    "birth_certificate": FileTypePolicy(
        max_size=10 * MB,
        allowed_mime_types=_IMAGE_OR_PDF,
        folder=SUPPORTING_DOCUMENTS_FOLDER,
    ),
    "valid_id": FileTypePolicy(
        max_size=10 * MB,
        allowed_mime_types=_IMAGE_OR_PDF,
        folder=SUPPORTING_DOCUMENTS_FOLDER,
    ),
    "transcript_of_records": FileTypePolicy(
        max_size=15 * MB,
        allowed_mime_types=_IMAGE_OR_PDF,
        folder=SUPPORTING_DOCUMENTS_FOLDER,
    ),
    "other": FileTypePolicy(
        max_size=10 * MB,
        allowed_mime_types=_IMAGE_OR_PDF + (MIME_DOC, MIME_DOCX),
        folder=SUPPORTING_DOCUMENTS_FOLDER,
    ),
}


def resolve_mime_type(filename: Optional[str], declared: Optional[str]) -> str:
    """Use the declared MIME type, falling back to a guess from the filename"""
    if declared and declared != "application/octet-stream":
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or declared or "application/octet-stream"


def get_file_type_policy(
    declared_type: str,
    policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY,
) -> Optional[FileTypePolicy]:
    return policy.get(declared_type)


def allowed_file_types(policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY) -> List[str]:
    return list(policy.keys())


def format_bytes(size: int) -> str:
    """Format a byte count for humans

    Example:
        >>> format_bytes(5 * 1024 * 1024)
        '5 MB'
        >>> format_bytes(1536)
        '1.5 KB'
    """
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value > 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    formatted = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{formatted} {units[index]}"


def validate_file(
    descriptor: FileDescriptor,
    declared_type: str,
    policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY,
) -> List[FileValidationError]:
    """Check a file against the policy for its declared type

    Size and MIME checks are evaluated independently, so a file that is both
    too large and of the wrong type gets both errors. An unknown declared
    type short-circuits since there is no policy to check against.

    Args:
        descriptor: File metadata (name, MIME type, size)
        declared_type: Caller-specified category, e.g. 'signature'
        policy: Policy table (defaults to DEFAULT_FILE_POLICY)

    Returns:
        List of errors; empty if the file is acceptable

    Example:
        >>> validate_file(FileDescriptor('tor.pdf', 'application/pdf', 1024), 'transcript_of_records')
        []
        >>> validate_file(FileDescriptor('x.exe', 'application/x-msdownload', 1), 'nope')
        [UnknownFileType('Invalid file type: nope')]
    """
    type_policy = policy.get(declared_type)
    if type_policy is None:
        return [UnknownFileType(declared_type)]

    errors: List[FileValidationError] = []

    if descriptor.size > type_policy.max_size:
        errors.append(FileTooLarge(descriptor.size, type_policy.max_size, format_bytes(type_policy.max_size)))

    if descriptor.mime_type not in type_policy.allowed_mime_types:
        errors.append(DisallowedMimeType(descriptor.mime_type, type_policy.allowed_mime_list()))

    return errors


def sanitize_requestor_name(name: Optional[str]) -> str:
    """Reduce a person's name to a storage-key-safe token

    Keeps ASCII letters, digits and whitespace, collapses whitespace runs to
    a single underscore and truncates to 50 characters.

    Example:
        >>> sanitize_requestor_name("  María  O'Brien-Cruz ")
        'Mara_OBrienCruz'
    """
    sanitized = re.sub(r"[^a-zA-Z0-9\s]", "", name or "", flags=re.ASCII)
    sanitized = re.sub(r"\s+", "_", sanitized.strip(), flags=re.ASCII)
    sanitized = sanitized[:REQUESTOR_NAME_MAX_LENGTH]
    return sanitized or "unknown"


def build_storage_key(
    descriptor: FileDescriptor,
    declared_type: str,
    request_id: str,
    requestor_name: Optional[str],
    clock: Clock = utc_now,
    policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY,
) -> str:
    """Derive the blob store key for an upload

    Format:
        {folder}/{request_id}_{requestor}_{type}_{YYYY-MM-DD_HH-MM-SS}_{random8}.{ext}

    The timestamp and random suffix follow the deterministic prefix, so two
    uploads of the same file for the same request in the same second still
    get distinct keys.

    Raises:
        UnknownFileType: If declared_type has no policy
    """
    type_policy = policy.get(declared_type)
    if type_policy is None:
        raise UnknownFileType(declared_type)

    timestamp = clock().strftime(TIMESTAMP_FORMAT)
    suffix = random_string(RANDOM_SUFFIX_LENGTH)
    file_name = (
        f"{request_id}_{sanitize_requestor_name(requestor_name)}_{declared_type}_{timestamp}_{suffix}"
    )
    if descriptor.extension:
        file_name = f"{file_name}.{descriptor.extension}"

    return f"{type_policy.folder}/{file_name}"


def allowed_extensions(policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY) -> List[str]:
    """Unique extensions accepted by any file type, in first-seen order"""
    extensions: List[str] = []
    for type_policy in policy.values():
        for mime_type in type_policy.allowed_mime_list():
            extension = MIME_TO_EXTENSION.get(mime_type)
            if extension and extension not in extensions:
                extensions.append(extension)
    return extensions


def describe_policy(policy: Mapping[str, FileTypePolicy] = DEFAULT_FILE_POLICY) -> dict:
    """Serializable view of the policy table for the file-types endpoint"""
    max_file_size = max((p.max_size for p in policy.values()), default=0)
    return {
        "allowed_types": allowed_file_types(policy),
        "max_file_size": max_file_size,
        "max_file_size_formatted": format_bytes(max_file_size),
        "allowed_extensions": allowed_extensions(policy),
        "types": {
            file_type: {
                "max_size": type_policy.max_size,
                "max_size_formatted": format_bytes(type_policy.max_size),
                "allowed_mime_types": type_policy.allowed_mime_list(),
                "allowed_extensions": [
                    MIME_TO_EXTENSION[mime] for mime in type_policy.allowed_mime_list() if mime in MIME_TO_EXTENSION
                ],
                "folder": type_policy.folder,
            }
            for file_type, type_policy in policy.items()
        },
    }
