from sqlalchemy import Column, Integer, String, Numeric
from database import Base
from models.audit_mixin import TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "product"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    sale_price = Column(Numeric(12, 2), default=0, nullable=False)
    # Denormalized, computed by the client at write time
    total_cost = Column(Numeric(12, 2), default=0, nullable=False)
