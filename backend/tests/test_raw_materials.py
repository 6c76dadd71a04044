def test_create_and_list_raw_materials(client, alice, make_material):
    created = make_material(alice, name="Paper", quantity=10, unit_cost=1.5)

    assert created["name"] == "Paper"
    assert created["quantity"] == 10
    assert created["unitCost"] == 1.5
    assert created["userId"] == alice.id

    listed = client.get("/insumos", headers=alice.headers).json()
    assert [m["id"] for m in listed] == [created["id"]]


def test_update_replaces_the_fields(client, alice, make_material):
    created = make_material(alice)

    response = client.put(
        f"/insumos/{created['id']}",
        json={"name": "Card stock", "quantity": 3, "unitCost": 4},
        headers=alice.headers,
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Card stock"
    assert client.get(f"/insumos/{created['id']}", headers=alice.headers).json()["quantity"] == 3


def test_delete_raw_material(client, alice, make_material):
    created = make_material(alice)

    assert client.delete(f"/insumos/{created['id']}", headers=alice.headers).status_code == 204
    assert client.get(f"/insumos/{created['id']}", headers=alice.headers).status_code == 404


def test_other_users_materials_are_invisible(client, alice, bob, make_material):
    created = make_material(alice)

    assert client.get("/insumos", headers=bob.headers).json() == []
    assert client.get(f"/insumos/{created['id']}", headers=bob.headers).status_code == 404
    put = client.put(f"/insumos/{created['id']}", json={"name": "Mine now", "quantity": 0, "unitCost": 0}, headers=bob.headers)
    assert put.status_code == 404
    assert put.json() == {"error": "Raw material not found"}
    assert client.delete(f"/insumos/{created['id']}", headers=bob.headers).status_code == 404

    still_there = client.get(f"/insumos/{created['id']}", headers=alice.headers).json()
    assert still_there["name"] == created["name"]


def test_invalid_material_is_rejected(client, alice):
    missing_name = client.post("/insumos", json={"quantity": 1, "unitCost": 1}, headers=alice.headers)
    negative = client.post("/insumos", json={"name": "Ink", "quantity": -1, "unitCost": 1}, headers=alice.headers)

    assert missing_name.status_code == 400
    assert negative.status_code == 400
    assert "quantity" in negative.json()["error"]


def test_snake_case_input_is_accepted(client, alice):
    response = client.post("/insumos", json={"name": "Ink", "quantity": 2, "unit_cost": 3}, headers=alice.headers)

    assert response.status_code == 201
    assert response.json()["unitCost"] == 3
