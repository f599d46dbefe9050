from conftest import auth_headers


async def _item(client, headers, quantity=5):
    response = await client.post(
        "/api/inventory",
        json={"name": "Whiteboard marker", "category": "Stationery", "quantity": quantity, "min_quantity": 2},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


async def test_stock_moves_in_and_out(client, seed):
    headers = auth_headers(seed.staff)
    item = await _item(client, headers, quantity=5)

    received = await client.post(
        "/api/inventory/transaction",
        json={"item_id": item["id"], "type": "IN", "quantity": 10},
        headers=headers,
    )
    assert received.status_code == 201
    assert received.json()["item"]["quantity"] == 15

    issued = await client.post(
        "/api/inventory/transaction",
        json={"item_id": item["id"], "type": "OUT", "quantity": 14, "notes": "Exam hall"},
        headers=headers,
    )
    assert issued.status_code == 201
    assert issued.json()["item"]["quantity"] == 1
    assert issued.json()["item"]["low_stock"] is True

    history = await client.get(f"/api/inventory/{item['id']}/transactions", headers=headers)
    assert sorted(t["type"] for t in history.json()) == ["IN", "OUT"]


async def test_out_beyond_stock_is_rejected(client, seed):
    headers = auth_headers(seed.staff)
    item = await _item(client, headers, quantity=3)

    response = await client.post(
        "/api/inventory/transaction",
        json={"item_id": item["id"], "type": "OUT", "quantity": 4},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Insufficient stock"

    items = (await client.get("/api/inventory", headers=headers)).json()
    assert items[0]["quantity"] == 3
    history = await client.get(f"/api/inventory/{item['id']}/transactions", headers=headers)
    assert history.json() == []


async def test_adjustment_sets_counted_stock(client, seed):
    headers = auth_headers(seed.staff)
    item = await _item(client, headers, quantity=3)
    response = await client.post(
        "/api/inventory/transaction",
        json={"item_id": item["id"], "type": "ADJUSTMENT", "quantity": 8},
        headers=headers,
    )
    assert response.json()["item"]["quantity"] == 8


async def test_update_does_not_touch_quantity(client, seed):
    headers = auth_headers(seed.staff)
    item = await _item(client, headers, quantity=3)
    response = await client.put(
        f"/api/inventory/{item['id']}",
        json={"location": "Store room", "quantity": 100},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["location"] == "Store room"
    assert response.json()["quantity"] == 3


async def test_category_filter(client, seed):
    headers = auth_headers(seed.staff)
    await _item(client, headers)
    await client.post("/api/inventory", json={"name": "Football", "category": "Sports"}, headers=headers)

    sports = (await client.get("/api/inventory", params={"category": "Sports"}, headers=headers)).json()
    assert [i["name"] for i in sports] == ["Football"]
