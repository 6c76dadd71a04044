from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class ProductMaterial(Base):
    __tablename__ = "product_material"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("product.id"), index=True, nullable=False)
    material_id = Column(Integer, ForeignKey("raw_material.id"), nullable=False)
    # Consumed per unit of product
    quantity = Column(Numeric(12, 3), nullable=False)

    material = relationship("RawMaterial")
