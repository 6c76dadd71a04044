"""
Sale writes.

record  insert sale (abort) -> per line: insert line (continue),
        load the product's materials (continue), decrement each material (continue)
update  check ownership -> update sale (abort) -> clear lines (abort) -> insert each line (continue)

Stock moves only when a sale is recorded. Updating a sale rewrites its lines
and leaves raw material quantities untouched.
"""
import logging
from typing import Dict, List

from crud.gateway import Gateway
from crud.relations import embed_product
from crud.saga import MutationOutcome, Saga, StepPolicy
from models.audit_mixin import utc_now
from schemas.sale import SaleCreate, SaleLine, SaleUpdate
from utils.errors import NotFound, ValidationError

logger = logging.getLogger("sales")


def _owned_products(gateway: Gateway, lines: List[SaleLine], tenant_id: str) -> Dict[int, dict]:
    products = {}
    for product_id in sorted({line.id for line in lines}):
        rows = gateway.find("product", {"id": product_id, "user_id": tenant_id})
        if not rows:
            raise ValidationError(f"Product {product_id} not found")
        products[product_id] = rows[0]
    return products


def _insert_line(saga: Saga, gateway: Gateway, sale_id: int, line: SaleLine, product: dict):
    rows = saga.run(
        f"link_product:{line.id}",
        lambda: gateway.insert(
            "sale_product",
            [{"sale_id": sale_id, "product_id": line.id, "quantity": line.quantity, "unit_price": line.captured_price()}],
        ),
        policy=StepPolicy.CONTINUE,
    )
    if rows:
        return embed_product({**rows[0], "product": product})
    return None


def _consume_stock(saga: Saga, gateway: Gateway, line: SaleLine, tenant_id: str):
    """Take the materials of ``line.quantity`` units out of stock, floored at zero."""
    links = saga.run(
        f"load_materials:{line.id}",
        lambda: gateway.find("product_material", {"product_id": line.id}),
        policy=StepPolicy.CONTINUE,
    )
    for link in links or []:
        consumed = (link["quantity"] or 0) * line.quantity
        # Materials missing or owned by someone else match no row and are skipped
        saga.run(
            f"decrement_stock:{link['material_id']}",
            lambda link=link, consumed=consumed: gateway.decrement(
                "raw_material",
                {"id": link["material_id"], "user_id": tenant_id},
                "quantity",
                consumed,
            ),
            policy=StepPolicy.CONTINUE,
        )


def record_sale(gateway: Gateway, sale: SaleCreate, tenant_id: str) -> MutationOutcome:
    products = _owned_products(gateway, sale.products, tenant_id)
    saga = Saga("record_sale")

    created = saga.run(
        "insert_sale",
        lambda: gateway.insert(
            "sale",
            [{"total": sale.total, "sold_at": sale.sold_at or utc_now(), "user_id": tenant_id}],
        )[0],
    )

    embedded = []
    for line in sale.products:
        link = _insert_line(saga, gateway, created["id"], line, products[line.id])
        if link:
            embedded.append(link)
        # Stock is consumed even when the line itself failed to insert
        _consume_stock(saga, gateway, line, tenant_id)

    outcome = saga.outcome({**created, "products": embedded})
    logger.info(f"Sale (ID: {created['id']}) recorded for user {tenant_id} with {len(embedded)}/{len(sale.products)} lines, {len(outcome.failures)} failed steps")
    return outcome


def update_sale(gateway: Gateway, sale_id: int, sale: SaleUpdate, tenant_id: str) -> MutationOutcome:
    if not gateway.find("sale", {"id": sale_id, "user_id": tenant_id}):
        raise NotFound("Sale not found")
    products = _owned_products(gateway, sale.products, tenant_id)
    saga = Saga("update_sale")

    patch = {"total": sale.total}
    if sale.sold_at is not None:
        patch["sold_at"] = sale.sold_at
    rows = saga.run("update_sale", lambda: gateway.update("sale", {"id": sale_id, "user_id": tenant_id}, patch))
    if not rows:
        raise NotFound("Sale not found")

    saga.run("clear_product_links", lambda: gateway.remove("sale_product", {"sale_id": sale_id}))
    embedded = []
    for line in sale.products:
        link = _insert_line(saga, gateway, sale_id, line, products[line.id])
        if link:
            embedded.append(link)

    outcome = saga.outcome({**rows[0], "products": embedded})
    logger.info(f"Sale (ID: {sale_id}) updated for user {tenant_id} with {len(embedded)}/{len(sale.products)} lines")
    return outcome
