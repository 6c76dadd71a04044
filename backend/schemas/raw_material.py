from pydantic import Field
from typing import Optional
from datetime import datetime
from .base import CamelModel


class RawMaterialBase(CamelModel):
    name: str = Field(..., min_length=1)
    quantity: float = Field(0, ge=0)
    unit_cost: float = Field(0, ge=0)


class RawMaterialCreate(RawMaterialBase):
    pass


class RawMaterialUpdate(RawMaterialBase):
    # PUT replaces every editable field
    pass


class RawMaterial(RawMaterialBase):
    id: int
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
