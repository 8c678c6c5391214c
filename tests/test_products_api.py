"""
API tests for /api/products.

Each test runs against a fresh app wired to an in-memory database.
"""


def _create(client, product_data, **overrides):
    response = client.post("/api/products", json=product_data(**overrides))
    assert response.status_code == 201
    return response.json()["payload"]


class TestListProducts:
    def test_laptops_sorted_desc_first_page(self, client, product_data):
        # Arrange: 7 laptops with distinct prices plus noise in other categories
        for price in [900, 1500, 700, 1200, 2500, 1100, 1999]:
            _create(client, product_data, category="Laptops", price=price)
        _create(client, product_data, category="Audio", price=5000)

        # Act
        response = client.get("/api/products?category=Laptops&sort=desc&page=1&limit=5")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert [p["price"] for p in body["payload"]] == [2500, 1999, 1500, 1200, 1100]
        assert body["totalDocs"] == 7
        assert body["totalPages"] == 2
        assert body["hasNextPage"] is True
        assert body["nextPage"] == 2
        assert body["hasPrevPage"] is False
        assert body["prevPage"] is None
        assert body["prevLink"] is None
        assert body["nextLink"] == (
            "http://testserver/api/products?page=2&limit=5&sort=desc&category=Laptops"
        )

    def test_second_page(self, client, product_data):
        for price in [900, 1500, 700, 1200, 2500, 1100, 1999]:
            _create(client, product_data, category="Laptops", price=price)

        body = client.get("/api/products?category=Laptops&sort=desc&page=2&limit=5").json()

        assert [p["price"] for p in body["payload"]] == [900, 700]
        assert body["hasNextPage"] is False
        assert body["nextLink"] is None
        assert body["prevLink"].endswith("?page=1&limit=5&sort=desc&category=Laptops")

    def test_defaults_and_malformed_numbers(self, client, product_data):
        for _ in range(12):
            _create(client, product_data)

        body = client.get("/api/products?limit=abc&page=-4").json()

        assert body["limit"] == 10
        assert body["page"] == 1
        assert len(body["payload"]) == 10
        assert body["nextLink"] == "http://testserver/api/products?page=2"

    def test_query_as_availability(self, client, product_data):
        _create(client, product_data, status=True)
        _create(client, product_data, status=False)

        body = client.get("/api/products?query=disponible").json()

        assert body["totalDocs"] == 1
        assert body["payload"][0]["status"] is True

    def test_empty_catalog(self, client):
        body = client.get("/api/products").json()
        assert body["payload"] == []
        assert body["totalPages"] == 0
        assert body["hasNextPage"] is False


class TestSingleProduct:
    def test_create_and_fetch(self, client, product_data):
        data = product_data(title="Keyboard", price=49.9, thumbnails=["kb.jpg"])
        created = client.post("/api/products", json=data).json()["payload"]

        response = client.get(f"/api/products/{created['id']}")

        assert response.status_code == 200
        fetched = response.json()["payload"]
        for key, value in data.items():
            assert fetched[key] == value

    def test_fetch_bad_id(self, client):
        response = client.get("/api/products/not-an-id")
        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_fetch_missing(self, client):
        response = client.get("/api/products/0123456789abcdef01234567")
        assert response.status_code == 404
        assert response.json()["status"] == "error"

    def test_create_invalid(self, client):
        response = client.post("/api/products", json={"title": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["errors"]

    def test_create_duplicate_code(self, client, product_data):
        _create(client, product_data, code="DUP-1")
        response = client.post("/api/products", json=product_data(code="DUP-1"))
        assert response.status_code == 400
        assert "DUP-1" in response.json()["message"]

    def test_update_duplicate_code(self, client, product_data):
        _create(client, product_data, code="DUP-A")
        other = _create(client, product_data, code="DUP-B")
        response = client.put(f"/api/products/{other['id']}", json={"code": "DUP-A"})
        assert response.status_code == 400
        assert response.json()["status"] == "error"
        assert client.get(f"/api/products/{other['id']}").json()["payload"]["code"] == "DUP-B"

    def test_create_non_object_body(self, client):
        response = client.post("/api/products", json=["not", "an", "object"])
        assert response.status_code == 400

    def test_update(self, client, product_data):
        created = _create(client, product_data, price=10)
        response = client.put(f"/api/products/{created['id']}", json={"price": 15.5, "id": "ignored"})
        assert response.status_code == 200
        payload = response.json()["payload"]
        assert payload["price"] == 15.5
        assert payload["id"] == created["id"]

    def test_update_invalid_and_missing(self, client, product_data):
        created = _create(client, product_data)
        assert client.put(f"/api/products/{created['id']}", json={"stock": -1}).status_code == 400
        assert client.put("/api/products/0123456789abcdef01234567", json={"stock": 1}).status_code == 404
        assert client.put("/api/products/bad", json={"stock": 1}).status_code == 400

    def test_delete(self, client, product_data):
        created = _create(client, product_data)
        response = client.delete(f"/api/products/{created['id']}")
        assert response.status_code == 200
        assert response.json()["payload"]["id"] == created["id"]
        assert client.get(f"/api/products/{created['id']}").status_code == 404
        assert client.delete(f"/api/products/{created['id']}").status_code == 404
        assert client.delete("/api/products/bad").status_code == 400
