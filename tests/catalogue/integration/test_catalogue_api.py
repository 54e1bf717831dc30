"""Integration tests for the /products and /categories endpoints."""


def _create_category(client, admin, headers, **payload):
    response = client.post("/categories", json=payload, headers=headers(admin))
    assert response.status_code == 201, response.json()
    return response.json()["data"]["id"]


class TestProductAPI:
    def test_seller_creates_and_anyone_browses(self, client, seller, headers):
        response = client.post(
            "/products",
            json={"name": "Woven Basket", "price": 18.0, "stock": 2},
            headers=headers(seller),
        )
        assert response.status_code == 201
        product_id = response.json()["data"]["id"]

        listing = client.get("/products").json()["data"]
        assert [p["id"] for p in listing] == [product_id]

    def test_product_detail_carries_review_statistics(self, client, make_product):
        product_id = make_product()
        data = client.get(f"/products/{product_id}").json()["data"]
        assert data["reviews"]["total_reviews"] == 0
        assert data["reviews"]["average_rating"] == 0

    def test_unknown_product(self, client):
        response = client.get("/products/missing")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Product not found", "error": "NotFound"}

    def test_buyer_cannot_create(self, client, buyer, headers):
        response = client.post("/products", json={"name": "X-ray", "price": 1.0}, headers=headers(buyer))
        assert response.status_code == 403

    def test_restock(self, client, seller, make_product, headers):
        product_id = make_product(stock=0)
        response = client.put(f"/products/{product_id}/restock", json={"quantity": 3}, headers=headers(seller))
        assert response.status_code == 200
        assert response.json()["data"]["stock"] == 3


class TestCategoryAPI:
    def test_tree(self, client, admin, headers):
        root = _create_category(client, admin, headers, name="Home")
        _create_category(client, admin, headers, name="Lighting", parent_id=root)

        tree = client.get("/categories/tree").json()["data"]
        assert tree[0]["name"] == "Home"
        assert tree[0]["children"][0]["name"] == "Lighting"

    def test_cycle_is_rejected(self, client, admin, headers):
        root = _create_category(client, admin, headers, name="Garden")
        child = _create_category(client, admin, headers, name="Tools", parent_id=root)

        response = client.put(f"/categories/{root}", json={"parent_id": child}, headers=headers(admin))
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_by_slug(self, client, admin, headers):
        category_id = _create_category(client, admin, headers, name="Board Games")
        response = client.get("/categories/slug/board-games")
        assert response.json()["data"]["id"] == category_id

    def test_seller_cannot_manage_categories(self, client, seller, headers):
        response = client.post("/categories", json={"name": "Nope"}, headers=headers(seller))
        assert response.status_code == 403
