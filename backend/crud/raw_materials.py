from crud.gateway import Gateway
from schemas.raw_material import RawMaterialCreate, RawMaterialUpdate
from utils.errors import NotFound


def get_raw_materials(gateway: Gateway, tenant_id: str):
    return gateway.find("raw_material", {"user_id": tenant_id})


def get_raw_material(gateway: Gateway, material_id: int, tenant_id: str):
    rows = gateway.find("raw_material", {"id": material_id, "user_id": tenant_id})
    if not rows:
        raise NotFound("Raw material not found")
    return rows[0]


def create_raw_material(gateway: Gateway, material: RawMaterialCreate, tenant_id: str):
    return gateway.insert("raw_material", [{**material.model_dump(), "user_id": tenant_id}])[0]


def update_raw_material(gateway: Gateway, material_id: int, material: RawMaterialUpdate, tenant_id: str):
    rows = gateway.update("raw_material", {"id": material_id, "user_id": tenant_id}, material.model_dump())
    if not rows:
        raise NotFound("Raw material not found")
    return rows[0]


def delete_raw_material(gateway: Gateway, material_id: int, tenant_id: str):
    get_raw_material(gateway, material_id, tenant_id)
    gateway.remove("raw_material", {"id": material_id, "user_id": tenant_id})
