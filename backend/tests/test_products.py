import pytest

from crud.gateway import Gateway
from utils.errors import StorageError


def _materials_of(product):
    return sorted((m["id"], m["quantity"]) for m in product["materials"])


def test_created_product_reads_back_with_its_materials(client, alice, make_material, make_product):
    m1 = make_material(alice, name="Paper", unit_cost=1.5)
    m2 = make_material(alice, name="Glue", unit_cost=0.5)

    created = make_product(alice, [(m2["id"], 3), (m1["id"], 2)])
    assert created["failures"] == []
    assert _materials_of(created) == sorted([(m1["id"], 2), (m2["id"], 3)])

    fetched = client.get(f"/produtos/{created['id']}", headers=alice.headers).json()
    assert _materials_of(fetched) == sorted([(m1["id"], 2), (m2["id"], 3)])
    embedded = {m["id"]: m for m in fetched["materials"]}
    assert embedded[m1["id"]]["name"] == "Paper"
    assert embedded[m1["id"]]["unitCost"] == 1.5
    assert "linkId" in embedded[m1["id"]]


def test_update_replaces_the_material_list(client, alice, make_material, make_product):
    m1 = make_material(alice, name="Paper")
    m3 = make_material(alice, name="Ribbon")
    product = make_product(alice, [(m1["id"], 2)])

    response = client.put(
        f"/produtos/{product['id']}",
        json={"name": "Notebook", "salePrice": 25, "totalCost": 9, "materials": [{"id": m3["id"], "quantity": 5}]},
        headers=alice.headers,
    )

    assert response.status_code == 200
    assert response.json()["salePrice"] == 25
    listed = client.get("/produtos", headers=alice.headers).json()
    assert len(listed) == 1
    assert _materials_of(listed[0]) == [(m3["id"], 5)]


def test_list_keeps_products_whose_materials_fail_to_load(client, alice, make_material, make_product, monkeypatch):
    material = make_material(alice)
    broken = make_product(alice, [(material["id"], 1)], name="Broken")
    healthy = make_product(alice, [(material["id"], 2)], name="Healthy")
    original_find = Gateway.find

    def flaky_find(self, entity, filters, embed=None):
        if entity == "product_material" and filters.get("product_id") == broken["id"]:
            raise StorageError("connection reset")
        return original_find(self, entity, filters, embed=embed)

    monkeypatch.setattr(Gateway, "find", flaky_find)

    listed = {p["id"]: p for p in client.get("/produtos", headers=alice.headers).json()}

    assert listed[broken["id"]]["materials"] == []
    assert _materials_of(listed[healthy["id"]]) == [(material["id"], 2)]


def test_delete_removes_the_product_and_its_links(client, alice, gateway, make_material, make_product):
    material = make_material(alice)
    product = make_product(alice, [(material["id"], 2)])

    assert client.delete(f"/produtos/{product['id']}", headers=alice.headers).status_code == 204

    assert client.get(f"/produtos/{product['id']}", headers=alice.headers).status_code == 404
    assert gateway.find("product_material", {"product_id": product["id"]}) == []
    # the material itself stays
    assert client.get(f"/insumos/{material['id']}", headers=alice.headers).status_code == 200


def test_foreign_or_missing_products_cannot_be_touched(client, alice, bob, gateway, make_material, make_product):
    material = make_material(alice)
    product = make_product(alice, [(material["id"], 2)])
    payload = {"name": "Hijacked", "salePrice": 1, "totalCost": 1, "materials": []}

    assert client.get("/produtos", headers=bob.headers).json() == []
    assert client.get(f"/produtos/{product['id']}", headers=bob.headers).status_code == 404
    assert client.put(f"/produtos/{product['id']}", json=payload, headers=bob.headers).status_code == 404
    response = client.delete(f"/produtos/{product['id']}", headers=bob.headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}
    assert client.delete("/produtos/9999", headers=alice.headers).status_code == 404
    # referencing the owner's own materials still reveals nothing
    with_owner_materials = {**payload, "materials": [{"id": material["id"], "quantity": 1}]}
    response = client.put(f"/produtos/{product['id']}", json=with_owner_materials, headers=bob.headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}

    untouched = client.get(f"/produtos/{product['id']}", headers=alice.headers).json()
    assert untouched["name"] == "Notebook"
    assert _materials_of(untouched) == [(material["id"], 2)]


def test_products_cannot_use_another_users_materials(client, alice, bob, make_material):
    foreign = make_material(alice)

    response = client.post(
        "/produtos",
        json={"name": "Sneaky", "salePrice": 1, "totalCost": 1, "materials": [{"id": foreign["id"], "quantity": 1}]},
        headers=bob.headers,
    )

    assert response.status_code == 400
    assert client.get("/produtos", headers=bob.headers).json() == []


def test_failed_link_inserts_are_reported_but_do_not_fail_the_create(client, alice, make_material, monkeypatch):
    good = make_material(alice, name="Paper")
    bad = make_material(alice, name="Glitter")
    original_insert = Gateway.insert

    def flaky_insert(self, entity, rows):
        if entity == "product_material" and rows[0]["material_id"] == bad["id"]:
            raise StorageError("insert timed out")
        return original_insert(self, entity, rows)

    monkeypatch.setattr(Gateway, "insert", flaky_insert)

    response = client.post(
        "/produtos",
        json={
            "name": "Card",
            "salePrice": 5,
            "totalCost": 2,
            "materials": [{"id": bad["id"], "quantity": 1}, {"id": good["id"], "quantity": 2}],
        },
        headers=alice.headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["failures"] == [{"step": f"link_material:{bad['id']}", "error": "insert timed out"}]
    assert _materials_of(body) == [(good["id"], 2)]
    monkeypatch.undo()
    fetched = client.get(f"/produtos/{body['id']}", headers=alice.headers).json()
    assert _materials_of(fetched) == [(good["id"], 2)]


def test_product_insert_failure_aborts_before_any_link(client, alice, gateway, make_material, monkeypatch):
    material = make_material(alice)
    original_insert = Gateway.insert
    attempted = []

    def failing_insert(self, entity, rows):
        attempted.append(entity)
        if entity == "product":
            raise StorageError("disk full")
        return original_insert(self, entity, rows)

    monkeypatch.setattr(Gateway, "insert", failing_insert)

    response = client.post(
        "/produtos",
        json={"name": "Card", "salePrice": 5, "totalCost": 2, "materials": [{"id": material["id"], "quantity": 1}]},
        headers=alice.headers,
    )

    assert response.status_code == 500
    assert response.json() == {"error": "disk full"}
    assert attempted == ["product"]


def test_update_aborts_when_old_links_cannot_be_cleared(client, alice, gateway, make_material, make_product, monkeypatch):
    m1 = make_material(alice, name="Paper")
    m2 = make_material(alice, name="Glue")
    product = make_product(alice, [(m1["id"], 2)])
    original_remove = Gateway.remove

    def failing_remove(self, entity, filters):
        if entity == "product_material":
            raise StorageError("lock timeout")
        return original_remove(self, entity, filters)

    monkeypatch.setattr(Gateway, "remove", failing_remove)

    response = client.put(
        f"/produtos/{product['id']}",
        json={"name": "Notebook", "salePrice": 20, "totalCost": 8, "materials": [{"id": m2["id"], "quantity": 1}]},
        headers=alice.headers,
    )

    assert response.status_code == 500
    links = gateway.find("product_material", {"product_id": product["id"]})
    assert [(link["material_id"], link["quantity"]) for link in links] == [(m1["id"], 2)]


def test_failed_product_delete_restores_its_links(client, alice, gateway, make_material, make_product, monkeypatch):
    material = make_material(alice)
    product = make_product(alice, [(material["id"], 2)])
    original_remove = Gateway.remove

    def failing_remove(self, entity, filters):
        if entity == "product":
            raise StorageError("foreign key violation")
        return original_remove(self, entity, filters)

    monkeypatch.setattr(Gateway, "remove", failing_remove)

    response = client.delete(f"/produtos/{product['id']}", headers=alice.headers)

    assert response.status_code == 500
    assert response.json() == {"error": "foreign key violation"}
    monkeypatch.undo()
    fetched = client.get(f"/produtos/{product['id']}", headers=alice.headers).json()
    assert _materials_of(fetched) == [(material["id"], 2)]


def test_delete_stops_when_links_cannot_be_removed(client, alice, make_material, make_product, monkeypatch):
    material = make_material(alice)
    product = make_product(alice, [(material["id"], 2)])
    removed = []
    original_remove = Gateway.remove

    def failing_remove(self, entity, filters):
        removed.append(entity)
        if entity == "product_material":
            raise StorageError("permission denied")
        return original_remove(self, entity, filters)

    monkeypatch.setattr(Gateway, "remove", failing_remove)

    response = client.delete(f"/produtos/{product['id']}", headers=alice.headers)

    assert response.status_code == 500
    assert removed == ["product_material"]
    monkeypatch.undo()
    assert client.get(f"/produtos/{product['id']}", headers=alice.headers).status_code == 200


@pytest.mark.parametrize("payload", [
    {"salePrice": 1, "totalCost": 1, "materials": []},
    {"name": "", "salePrice": 1, "totalCost": 1, "materials": []},
    {"name": "Card", "salePrice": 1, "totalCost": 1, "materials": [{"id": 1, "quantity": -2}]},
])
def test_invalid_products_are_rejected(client, alice, payload):
    response = client.post("/produtos", json=payload, headers=alice.headers)

    assert response.status_code == 400
    assert "error" in response.json()
