from sqlalchemy import Column, Integer, String, Numeric, DateTime
from database import Base
from models.audit_mixin import TimestampMixin, utc_now


class Sale(Base, TimestampMixin):
    __tablename__ = "sale"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    # Caller supplied, never recomputed from the lines
    total = Column(Numeric(12, 2), nullable=False)
    sold_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
