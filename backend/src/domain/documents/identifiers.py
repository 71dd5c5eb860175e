"""Identifier generation for document requests, API keys and storage keys

Request IDs are made unique by generate-and-check against the store.
API keys rely on 32 random characters and the unique constraint on
api_keys.key; no store lookup happens when a key is generated.
"""

import secrets
import string
from datetime import datetime, timezone
from typing import Callable

# Type alias for an injectable time source
Clock = Callable[[], datetime]

UPPERCASE_ALPHANUMERIC = string.ascii_uppercase + string.digits
ALPHANUMERIC = string.ascii_letters + string.digits

REQUEST_ID_PREFIX = "DOC"
REQUEST_ID_RANDOM_LENGTH = 8
API_KEY_PREFIX = "sk-"
API_KEY_RANDOM_LENGTH = 32


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def random_string(length: int, alphabet: str = ALPHANUMERIC) -> str:
    """Cryptographically random string drawn from alphabet"""
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_request_id(exists: Callable[[str], bool], clock: Clock = utc_now) -> str:
    """Generate a request ID that is not yet present in the store

    Format: DOC-{year}-{8 uppercase alphanumerics}

    Args:
        exists: Returns True if a candidate is already taken. Raises
            StoreUnavailable if the store cannot be queried; the error
            propagates so a possibly duplicate ID is never returned.
        clock: Time source for the year component

    Returns:
        str: Unique request ID

    Example:
        >>> generate_request_id(lambda candidate: False)
        'DOC-2025-7K2M9QXA'
    """
    year = clock().year
    while True:
        candidate = f"{REQUEST_ID_PREFIX}-{year}-{random_string(REQUEST_ID_RANDOM_LENGTH, UPPERCASE_ALPHANUMERIC)}"
        if not exists(candidate):
            return candidate


def generate_api_key(prefix: str = API_KEY_PREFIX) -> str:
    """Generate an opaque API key token: {prefix}{32 alphanumerics}"""
    return f"{prefix}{random_string(API_KEY_RANDOM_LENGTH)}"
