"""
Product writes.

A product and its material links are written in separate gateway calls, so
every write is a saga:

create  insert product (abort) -> insert each link (continue)
update  check ownership -> update product (abort) -> clear links (abort) -> insert each link (continue)
delete  check ownership -> clear links (abort, compensated) -> delete product (abort)

Links are replaced wholesale on update; there is no diffing.
"""
import logging
from typing import Dict, List

from crud.gateway import Gateway
from crud.relations import embed_material
from crud.saga import MutationOutcome, Saga, StepPolicy
from schemas.product import ProductCreate, ProductMaterialLine, ProductUpdate
from utils.errors import NotFound, ValidationError

logger = logging.getLogger("products")


def _owned_materials(gateway: Gateway, lines: List[ProductMaterialLine], tenant_id: str) -> Dict[int, dict]:
    materials = {}
    for material_id in sorted({line.id for line in lines}):
        rows = gateway.find("raw_material", {"id": material_id, "user_id": tenant_id})
        if not rows:
            raise ValidationError(f"Raw material {material_id} not found")
        materials[material_id] = rows[0]
    return materials


def _link_materials(saga: Saga, gateway: Gateway, product_id: int, lines: List[ProductMaterialLine], materials: Dict[int, dict]) -> List[dict]:
    """Insert one link per line, one call each. Failed inserts are recorded on the saga."""
    embedded = []
    for line in lines:
        rows = saga.run(
            f"link_material:{line.id}",
            lambda line=line: gateway.insert(
                "product_material",
                [{"product_id": product_id, "material_id": line.id, "quantity": line.quantity}],
            ),
            policy=StepPolicy.CONTINUE,
        )
        if rows:
            embedded.append(embed_material({**rows[0], "material": materials[line.id]}))
    return embedded


def _product_fields(product: ProductCreate) -> dict:
    return {"name": product.name, "sale_price": product.sale_price, "total_cost": product.total_cost}


def create_product(gateway: Gateway, product: ProductCreate, tenant_id: str) -> MutationOutcome:
    materials = _owned_materials(gateway, product.materials, tenant_id)
    saga = Saga("create_product")

    created = saga.run(
        "insert_product",
        lambda: gateway.insert("product", [{**_product_fields(product), "user_id": tenant_id}])[0],
    )
    embedded = _link_materials(saga, gateway, created["id"], product.materials, materials)

    outcome = saga.outcome({**created, "materials": embedded})
    logger.info(f"Product (ID: {created['id']}) created for user {tenant_id} with {len(embedded)}/{len(product.materials)} materials")
    return outcome


def update_product(gateway: Gateway, product_id: int, product: ProductUpdate, tenant_id: str) -> MutationOutcome:
    # Ownership of the product is settled before the submitted lines are looked at
    if not gateway.find("product", {"id": product_id, "user_id": tenant_id}):
        raise NotFound("Product not found")
    materials = _owned_materials(gateway, product.materials, tenant_id)
    saga = Saga("update_product")

    rows = saga.run(
        "update_product",
        lambda: gateway.update("product", {"id": product_id, "user_id": tenant_id}, _product_fields(product)),
    )
    if not rows:
        raise NotFound("Product not found")

    # Aborts here: the new link set is never merged into the old one
    saga.run("clear_material_links", lambda: gateway.remove("product_material", {"product_id": product_id}))
    embedded = _link_materials(saga, gateway, product_id, product.materials, materials)

    outcome = saga.outcome({**rows[0], "materials": embedded})
    logger.info(f"Product (ID: {product_id}) updated for user {tenant_id} with {len(embedded)}/{len(product.materials)} materials")
    return outcome


def delete_product(gateway: Gateway, product_id: int, tenant_id: str) -> MutationOutcome:
    saga = Saga("delete_product")

    rows = saga.run("load_product", lambda: gateway.find("product", {"id": product_id, "user_id": tenant_id}))
    if not rows:
        raise NotFound("Product not found")

    links = saga.run("load_material_links", lambda: gateway.find("product_material", {"product_id": product_id}))
    saga.run(
        "clear_material_links",
        lambda: gateway.remove("product_material", {"product_id": product_id}),
        compensate=lambda _: gateway.insert("product_material", links) if links else None,
    )
    # Links go first so none can point at a deleted product
    saga.run("delete_product", lambda: gateway.remove("product", {"id": product_id, "user_id": tenant_id}))

    logger.info(f"Product (ID: {product_id}) deleted for user {tenant_id} together with {len(links)} material links")
    return saga.outcome(rows[0])
