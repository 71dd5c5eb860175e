"""Base SQLAlchemy declarative base for all models"""

from sqlalchemy import Column, DateTime, TypeDecorator, JSON, func
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import JSONB


class PortableJSONB(TypeDecorator):
    """JSON type that works with both PostgreSQL (JSONB) and SQLite (JSON).

    Uses JSONB on PostgreSQL for efficient indexing and querying,
    falls back to JSON on SQLite for testing compatibility.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


Base = declarative_base()


class TimestampMixin:
    """created_at / updated_at columns maintained by the database"""
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


def isoformat(value):
    """ISO-8601 string for a datetime column value (None passes through)"""
    return value.isoformat() if value else None
