# peerfusion/models/mixins.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func


def utcnow():
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin to add a created_at column to models"""
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
