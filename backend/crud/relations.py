"""
Relational composition for the read paths.

Parents are fetched with one query; the children of every parent are then
fetched concurrently (one query per parent) and embedded in the parent row.
A child query that fails degrades only its own parent, which is returned with
an empty child list.
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, List

from crud.gateway import Gateway
from utils.errors import NotFound, StorageError

logger = logging.getLogger("relations")

FANOUT_WORKERS = int(os.getenv("FANOUT_WORKERS", "8"))


def _fan_out(compose: Callable[[dict], dict], parents: List[dict]) -> List[dict]:
    if not parents:
        return []
    with ThreadPoolExecutor(max_workers=min(FANOUT_WORKERS, len(parents))) as pool:
        # map keeps the parents' order
        return list(pool.map(compose, parents))


def embed_material(link: dict) -> dict:
    material = link.get("material") or {}
    return {
        "id": link["material_id"],
        "name": material.get("name"),
        "unit_cost": material.get("unit_cost"),
        "quantity": link["quantity"],
        "link_id": link["id"],
    }


def embed_product(link: dict) -> dict:
    product = link.get("product") or {}
    return {
        "id": link["product_id"],
        "name": product.get("name"),
        "sale_price": product.get("sale_price"),
        "unit_price": link["unit_price"],
        "quantity": link["quantity"],
        "link_id": link["id"],
    }


def with_materials(gateway: Gateway, product: dict) -> dict:
    try:
        links = gateway.find("product_material", {"product_id": product["id"]}, embed="material")
    except StorageError as exc:
        logger.warning(f"Materials of product {product['id']} unavailable, returning it without them: {exc.message}")
        return {**product, "materials": []}
    return {**product, "materials": [embed_material(link) for link in links]}


def with_products(gateway: Gateway, sale: dict) -> dict:
    try:
        links = gateway.find("sale_product", {"sale_id": sale["id"]}, embed="product")
    except StorageError as exc:
        logger.warning(f"Products of sale {sale['id']} unavailable, returning it without them: {exc.message}")
        return {**sale, "products": []}
    return {**sale, "products": [embed_product(link) for link in links]}


def list_products(gateway: Gateway, tenant_id: str) -> List[dict]:
    products = gateway.find("product", {"user_id": tenant_id})
    return _fan_out(partial(with_materials, gateway), products)


def get_product(gateway: Gateway, product_id: int, tenant_id: str) -> dict:
    rows = gateway.find("product", {"id": product_id, "user_id": tenant_id})
    if not rows:
        raise NotFound("Product not found")
    return with_materials(gateway, rows[0])


def list_sales(gateway: Gateway, tenant_id: str) -> List[dict]:
    sales = gateway.find("sale", {"user_id": tenant_id})
    return _fan_out(partial(with_products, gateway), sales)


def get_sale(gateway: Gateway, sale_id: int, tenant_id: str) -> dict:
    rows = gateway.find("sale", {"id": sale_id, "user_id": tenant_id})
    if not rows:
        raise NotFound("Sale not found")
    return with_products(gateway, rows[0])
