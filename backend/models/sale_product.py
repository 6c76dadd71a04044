from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class SaleProduct(Base):
    __tablename__ = "sale_product"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sale.id"), index=True, nullable=False)
    # No FK: historical lines outlive the product they were sold as
    product_id = Column(Integer, index=True, nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), default=0, nullable=False)

    product = relationship(
        "Product",
        primaryjoin="foreign(SaleProduct.product_id) == Product.id",
        viewonly=True,
    )
