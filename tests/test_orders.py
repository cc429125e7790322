ORDER = {
    "customer": "Ann Lee",
    "items": [
        {"productName": "Boot", "quantity": 2, "price": 49.99},
        {"productName": "Lace", "quantity": 1, "price": 2.5},
    ],
    "total": 100,
}


def test_create_keeps_client_total(client):
    resp = client.post("/api/orders", json=ORDER)
    assert resp.status_code == 201, resp.text

    order = resp.json()
    assert order["total"] == 100
    assert order["status"] == "Processing"
    assert order["items"][0]["productName"] == "Boot"
    assert order["orderDate"]


def test_create_requires_customer_and_total(client):
    resp = client.post("/api/orders", json={"items": []})
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Order validation failed")


def test_status_can_jump_to_any_value(client):
    created = client.post("/api/orders", json=ORDER).json()

    for status in ("Delivered", "Processing", "Cancelled", "Shipped"):
        resp = client.put(f"/api/orders/{created['id']}", json={"status": status})
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == status


def test_unknown_status_rejected(client):
    created = client.post("/api/orders", json=ORDER).json()
    resp = client.put(f"/api/orders/{created['id']}", json={"status": "Lost"})
    assert resp.status_code == 400


def test_list_and_delete(client):
    created = client.post("/api/orders", json=ORDER).json()
    assert len(client.get("/api/orders").json()) == 1

    resp = client.delete(f"/api/orders/{created['id']}")
    assert resp.json() == {"message": "Order deleted successfully."}
    assert client.get("/api/orders").json() == []
