"""ApiKey SQLAlchemy model"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, Boolean, DateTime, text

from .base import Base, TimestampMixin, isoformat


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ApiKey(TimestampMixin, Base):
    """Credential for an external client of the intake API.

    The raw key is only shown once, by the CLI that creates it; to_dict()
    never includes it. Keys are deactivated or left to expire, never deleted.
    """
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    key = Column(String(255), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return _as_utc(self.expires_at) <= _as_utc(now)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Active and not expired at `now`"""
        return bool(self.is_active) and not self.is_expired(now)

    def to_dict(self):
        """Convert API key to dictionary representation (without the key)"""
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "last_used_at": isoformat(self.last_used_at),
            "expires_at": isoformat(self.expires_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, name={self.name}, is_active={self.is_active})>"
