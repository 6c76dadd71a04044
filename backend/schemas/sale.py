from pydantic import Field
from typing import List, Optional
from datetime import datetime
from .base import CamelModel, StepFailure


class SaleLine(CamelModel):
    id: int  # product id
    quantity: float = Field(..., gt=0)
    # Captured on the line; falls back to sale_price, then 0
    unit_price: Optional[float] = Field(None, ge=0)
    sale_price: Optional[float] = Field(None, ge=0)

    def captured_price(self) -> float:
        if self.unit_price is not None:
            return self.unit_price
        if self.sale_price is not None:
            return self.sale_price
        return 0.0


class SaleCreate(CamelModel):
    total: float = Field(..., ge=0)
    sold_at: Optional[datetime] = None
    products: List[SaleLine] = Field(..., min_length=1)


class SaleUpdate(SaleCreate):
    pass


class EmbeddedProduct(CamelModel):
    id: int
    name: Optional[str] = None
    sale_price: Optional[float] = None
    unit_price: float
    quantity: float
    link_id: int


class Sale(CamelModel):
    id: int
    user_id: str
    total: float
    sold_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    products: List[EmbeddedProduct] = []


class SaleMutation(Sale):
    failures: List[StepFailure] = []
