from fastapi import APIRouter, Depends, Response, status
from typing import List

from crud import products as crud_products
from crud import relations
from crud.gateway import Gateway, get_gateway
from schemas.product import Product, ProductCreate, ProductMutation, ProductUpdate
from utils.tenancy import get_tenant_id

router = APIRouter(prefix="/produtos", tags=["Products"])


@router.get("", response_model=List[Product])
def read_products(gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    """Retrieve the caller's products, each with its embedded materials."""
    return relations.list_products(gateway, tenant_id)


@router.get("/{product_id}", response_model=Product)
def read_product(product_id: int, gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    return relations.get_product(gateway, product_id, tenant_id)


@router.post("", response_model=ProductMutation, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    gateway: Gateway = Depends(get_gateway),
    tenant_id: str = Depends(get_tenant_id)
):
    """
    Create a product and link its materials.

    Links that fail to insert do not fail the request; they are listed under
    ``failures`` in the response.
    """
    return crud_products.create_product(gateway, product, tenant_id).as_response()


@router.put("/{product_id}", response_model=ProductMutation)
def update_product(
    product_id: int,
    product: ProductUpdate,
    gateway: Gateway = Depends(get_gateway),
    tenant_id: str = Depends(get_tenant_id)
):
    """Update a product and replace its whole material list."""
    return crud_products.update_product(gateway, product_id, product, tenant_id).as_response()


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    """Delete a product after removing its material links."""
    crud_products.delete_product(gateway, product_id, tenant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
