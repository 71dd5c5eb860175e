"""API key authentication

Clients authenticate with an opaque key sent as X-API-Key or as
"Authorization: Bearer <key>". Keys are looked up by exact match and must
be active and unexpired.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.documents.errors import InvalidOrExpired, MissingCredential
from domain.documents.identifiers import API_KEY_PREFIX, Clock, generate_api_key, utc_now
from models.api_key import ApiKey
from observability.metrics import record_api_key_auth

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_token(x_api_key: Optional[str], authorization: Optional[str]) -> Optional[str]:
    """Pick the presented key from the request headers.

    X-API-Key wins over Authorization. A literal "Bearer " prefix
    (case-sensitive) is stripped from whichever header was used.

    Example:
        >>> extract_token(None, "Bearer sk-abc")
        'sk-abc'
        >>> extract_token("sk-abc", "Bearer sk-other")
        'sk-abc'
    """
    token = x_api_key or authorization
    if token and token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token or None


class ApiKeyAuthenticator:
    """Validates presented API keys and issues new ones."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def authenticate(self, token: Optional[str]) -> ApiKey:
        """Resolve a presented token to a valid API key.

        Records last_used_at on success; a failure to record it is logged
        and does not fail the request.

        Raises:
            MissingCredential: No token was presented
            InvalidOrExpired: Unknown, inactive or expired key
        """
        if not token:
            record_api_key_auth("missing")
            raise MissingCredential()

        now = self.clock()
        api_key = self.db.query(ApiKey).filter(ApiKey.key == token).first()
        if api_key is None or not api_key.is_valid(now):
            record_api_key_auth("invalid")
            raise InvalidOrExpired()

        self._mark_used(api_key, now)
        record_api_key_auth("success")
        return api_key

    def create_key(self, name: str, expires_at: Optional[datetime] = None, prefix: str = API_KEY_PREFIX) -> ApiKey:
        """Create and persist a new active key"""
        api_key = ApiKey(
            name=name,
            key=generate_api_key(prefix),
            is_active=True,
            expires_at=expires_at,
        )
        self.db.add(api_key)
        self.db.commit()
        self.db.refresh(api_key)
        logger.info(f"Created API key: id={api_key.id}, name={name}", extra={"api_key_id": api_key.id})
        return api_key

    def _mark_used(self, api_key: ApiKey, now: datetime) -> None:
        try:
            api_key.last_used_at = now
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to record API key usage: id={api_key.id}, error={e}")
