from sqlalchemy import Column, DateTime
from datetime import datetime
import pytz


def utc_now():
    return datetime.now(pytz.utc)


class TimestampMixin:
    """Mixin that provides created/updated timestamps.

    Base entities carry it; junction rows do not, since they are deleted and
    recreated wholesale and never updated in place.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), onupdate=utc_now)
