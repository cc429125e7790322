def test_create_and_list(client):
    resp = client.post("/api/categories", json={"name": "Shoes"})
    assert resp.status_code == 201, resp.text
    assert resp.json()["name"] == "Shoes"

    listed = client.get("/api/categories").json()
    assert [c["name"] for c in listed] == ["Shoes"]


def test_duplicate_name_rejected(client, store):
    assert client.post("/api/categories", json={"name": "Shoes"}).status_code == 201

    dup = client.post("/api/categories", json={"name": "Shoes"})
    assert dup.status_code == 400, dup.text
    assert dup.json()["message"]
    assert store["category"].count_documents({}) == 1
    assert len(client.get("/api/categories").json()) == 1


def test_rename(client):
    created = client.post("/api/categories", json={"name": "Shoes"}).json()
    resp = client.put(f"/api/categories/{created['id']}", json={"name": "Footwear"})
    assert resp.status_code == 200
    assert resp.json() == {"id": created["id"], "name": "Footwear"}


def test_delete(client):
    created = client.post("/api/categories", json={"name": "Shoes"}).json()
    resp = client.delete(f"/api/categories/{created['id']}")
    assert resp.json() == {"message": "Category deleted successfully."}
    assert client.get("/api/categories").json() == []
