from pydantic import Field
from typing import List, Optional
from datetime import datetime
from .base import CamelModel, StepFailure


class ProductMaterialLine(CamelModel):
    """One material consumed by a product, as submitted by the client."""
    id: int  # raw material id
    quantity: float = Field(..., ge=0)


class ProductBase(CamelModel):
    name: str = Field(..., min_length=1)
    sale_price: float = Field(0, ge=0)
    total_cost: float = Field(0, ge=0)


class ProductCreate(ProductBase):
    materials: List[ProductMaterialLine] = []


class ProductUpdate(ProductCreate):
    pass


class EmbeddedMaterial(CamelModel):
    id: int
    name: Optional[str] = None
    unit_cost: Optional[float] = None
    quantity: float
    link_id: int


class Product(ProductBase):
    id: int
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    materials: List[EmbeddedMaterial] = []


class ProductMutation(Product):
    failures: List[StepFailure] = []
