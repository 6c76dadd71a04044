from fastapi import APIRouter, Depends, status
from typing import List

from crud import relations
from crud import sales as crud_sales
from crud.gateway import Gateway, get_gateway
from schemas.sale import Sale, SaleCreate, SaleMutation, SaleUpdate
from utils.tenancy import get_tenant_id

router = APIRouter(prefix="/vendas", tags=["Sales"])


@router.get("", response_model=List[Sale])
def read_sales(gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    """Retrieve the caller's sales, each with its embedded product lines."""
    return relations.list_sales(gateway, tenant_id)


@router.get("/{sale_id}", response_model=Sale)
def read_sale(sale_id: int, gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    return relations.get_sale(gateway, sale_id, tenant_id)


@router.post("", response_model=SaleMutation, status_code=status.HTTP_201_CREATED)
def record_sale(
    sale: SaleCreate,
    gateway: Gateway = Depends(get_gateway),
    tenant_id: str = Depends(get_tenant_id)
):
    """
    Record a sale and take the consumed raw materials out of stock.

    The total and the unit prices are stored as submitted. Lines or stock
    updates that fail are listed under ``failures``; the sale itself stands.
    """
    return crud_sales.record_sale(gateway, sale, tenant_id).as_response()


@router.put("/{sale_id}", response_model=SaleMutation)
def update_sale(
    sale_id: int,
    sale: SaleUpdate,
    gateway: Gateway = Depends(get_gateway),
    tenant_id: str = Depends(get_tenant_id)
):
    """Update a sale and replace its lines. Stock is not adjusted again."""
    return crud_sales.update_sale(gateway, sale_id, sale, tenant_id).as_response()
