"""
Base configurations and mixins for database models.

Identifiers are stored as UUID strings so the same schema works on SQLite
and PostgreSQL, and so canonical pair ordering can rely on plain string
comparison.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, inspect
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql.functions import now as db_now


class CustomBase:
    """
    Custom base class for SQLAlchemy models with dictionary serialization.
    """

    def to_dict(self) -> dict:
        d = {}
        for column in inspect(self).mapper.column_attrs:
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                d[column.key] = value.isoformat()
            else:
                d[column.key] = value
        return d


Base = declarative_base(cls=CustomBase)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """
    Adds database-managed created_at and updated_at columns.
    """

    created_at = Column(
        DateTime(timezone=True),
        server_default=db_now(),
        nullable=False,
        comment="Timestamp when the record was created",
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=db_now(),
        onupdate=db_now(),
        nullable=False,
        comment="Timestamp when the record was last updated",
    )


__all__ = ["Base", "TimestampMixin", "new_id"]
