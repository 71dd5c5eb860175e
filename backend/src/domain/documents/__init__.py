"""Documents domain module - request lifecycle, file policy, identifiers

Pure domain logic shared by the document request and document file managers.
"""

from .request_status import (
    RequestStatus,
    RequestType,
    Gender,
    resolve_processed_at,
    status_values,
    request_type_values,
)
from .file_policy import (
    FileDescriptor,
    FileTypePolicy,
    DEFAULT_FILE_POLICY,
    validate_file,
    build_storage_key,
    sanitize_requestor_name,
    format_bytes,
    get_file_type_policy,
    allowed_file_types,
    allowed_extensions,
    describe_policy,
)
from .identifiers import (
    Clock,
    utc_now,
    random_string,
    generate_request_id,
    generate_api_key,
)

__all__ = [
    "RequestStatus",
    "RequestType",
    "Gender",
    "resolve_processed_at",
    "status_values",
    "request_type_values",
    "FileDescriptor",
    "FileTypePolicy",
    "DEFAULT_FILE_POLICY",
    "validate_file",
    "build_storage_key",
    "sanitize_requestor_name",
    "format_bytes",
    "get_file_type_policy",
    "allowed_file_types",
    "allowed_extensions",
    "describe_policy",
    "Clock",
    "utc_now",
    "random_string",
    "generate_request_id",
    "generate_api_key",
]
