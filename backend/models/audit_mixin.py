from sqlalchemy import Column, DateTime, String
from datetime import datetime
import os
import pytz

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")


def now_local() -> datetime:
    """Current time in the configured application timezone."""
    return datetime.now(pytz.timezone(APP_TIMEZONE))


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    Financial records are never soft-deleted: journal entries are immutable once
    posted and documents are removed only through their owning header, so this
    mixin carries no deleted_at/deleted_by columns.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=now_local)
    updated_at = Column(DateTime(timezone=True), onupdate=now_local)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
