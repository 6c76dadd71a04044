from fastapi import APIRouter, Depends, Response, status
from typing import List
import logging

from crud import raw_materials as crud_raw_materials
from crud.gateway import Gateway, get_gateway
from schemas.raw_material import RawMaterial, RawMaterialCreate, RawMaterialUpdate
from utils.tenancy import get_tenant_id

router = APIRouter(prefix="/insumos", tags=["Raw Materials"])
logger = logging.getLogger("raw_materials")


@router.get("", response_model=List[RawMaterial])
def read_raw_materials(gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    """Retrieve the caller's raw materials."""
    return crud_raw_materials.get_raw_materials(gateway, tenant_id)


@router.get("/{material_id}", response_model=RawMaterial)
def read_raw_material(material_id: int, gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    return crud_raw_materials.get_raw_material(gateway, material_id, tenant_id)


@router.post("", response_model=RawMaterial, status_code=status.HTTP_201_CREATED)
def create_raw_material(
    material: RawMaterialCreate,
    gateway: Gateway = Depends(get_gateway),
    tenant_id: str = Depends(get_tenant_id)
):
    """Create a new raw material."""
    created = crud_raw_materials.create_raw_material(gateway, material, tenant_id)
    logger.info(f"Raw material '{created['name']}' (ID: {created['id']}) created for user {tenant_id}")
    return created


@router.put("/{material_id}", response_model=RawMaterial)
def update_raw_material(
    material_id: int,
    material: RawMaterialUpdate,
    gateway: Gateway = Depends(get_gateway),
    tenant_id: str = Depends(get_tenant_id)
):
    """Replace name, quantity and unit cost of a raw material."""
    updated = crud_raw_materials.update_raw_material(gateway, material_id, material, tenant_id)
    logger.info(f"Raw material (ID: {material_id}) updated for user {tenant_id}")
    return updated


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_raw_material(material_id: int, gateway: Gateway = Depends(get_gateway), tenant_id: str = Depends(get_tenant_id)):
    crud_raw_materials.delete_raw_material(gateway, material_id, tenant_id)
    logger.info(f"Raw material (ID: {material_id}) deleted for user {tenant_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
