from sqlalchemy import Column, Integer, String, Numeric
from database import Base
from models.audit_mixin import TimestampMixin


class RawMaterial(Base, TimestampMixin):
    __tablename__ = "raw_material"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    # Never driven below zero by sales; direct edits are not range checked
    quantity = Column(Numeric(12, 3), default=0, nullable=False)
    unit_cost = Column(Numeric(12, 2), default=0, nullable=False)
