"""
Тесты каталога и управления товарами
"""
from tests.conftest import auth_headers

NEW_PRODUCT = {
    "name": "Wool sweater",
    "description": "Warm sweater",
    "price": 3200.0,
    "category": "sweaters",
    "sizes": ["M", "L"],
    "colors": ["grey"],
    "stock": 4,
    "images": [{"url": "https://cdn.example.com/sweater.jpg", "alt": "Sweater"}],
}


class TestCatalog:
    """Публичный список товаров"""

    def test_list_all(self, client, products):
        response = client.get("/api/products")

        assert response.status_code == 200
        assert response.json()["total"] == 3

    def test_search_matches_name_description_and_category(self, client, products):
        by_name = client.get("/api/products", params={"search": "jeans"}).json()
        by_description = client.get("/api/products", params={"search": "denim"}).json()
        by_category = client.get("/api/products", params={"search": "dresses"}).json()

        assert [p["name"] for p in by_name["products"]] == ["Slim jeans"]
        assert [p["name"] for p in by_description["products"]] == ["Slim jeans"]
        assert [p["name"] for p in by_category["products"]] == ["Summer dress"]

    def test_filter_by_categories(self, client, products):
        response = client.get("/api/products", params=[("category", "jeans"), ("category", "dresses")])

        assert {p["category"] for p in response.json()["products"]} == {"jeans", "dresses"}

    def test_filter_by_price_range(self, client, products):
        response = client.get("/api/products", params={"minPrice": 1000, "maxPrice": 2000})

        assert [p["name"] for p in response.json()["products"]] == ["Summer dress"]

    def test_filter_by_size(self, client, products):
        response = client.get("/api/products", params={"size": "32"})

        assert [p["name"] for p in response.json()["products"]] == ["Slim jeans"]

    def test_sort_by_price(self, client, products):
        asc = client.get("/api/products", params={"sort": "price-asc"}).json()["products"]
        desc = client.get("/api/products", params={"sort": "price-desc"}).json()["products"]

        assert [p["price"] for p in asc] == [500.0, 1800.0, 2500.0]
        assert [p["price"] for p in desc] == [2500.0, 1800.0, 500.0]

    def test_sort_by_name(self, client, products):
        response = client.get("/api/products", params={"sort": "name-asc"})

        assert [p["name"] for p in response.json()["products"]] == ["Basic T-shirt", "Slim jeans", "Summer dress"]

    def test_unknown_sort_is_rejected(self, client, products):
        assert client.get("/api/products", params={"sort": "random"}).status_code == 422

    def test_get_product(self, client, products):
        shirt = products["shirt"]
        response = client.get(f"/api/products/{shirt.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["sizes"] == ["S", "M", "L"]
        assert data["sellerId"] == shirt.seller_id

    def test_get_missing_product(self, client, products):
        response = client.get("/api/products/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Resource not found", "detail": "Product missing not found"}


class TestManageProducts:
    """Создание, изменение и удаление товаров"""

    def test_seller_creates_product(self, client, users):
        response = client.post("/api/products", json=NEW_PRODUCT, headers=auth_headers(users["seller"]))

        assert response.status_code == 201
        data = response.json()
        assert data["sellerId"] == users["seller"].id
        assert data["images"] == [{"url": "https://cdn.example.com/sweater.jpg", "alt": "Sweater"}]

    def test_buyer_cannot_create_product(self, client, users):
        response = client.post("/api/products", json=NEW_PRODUCT, headers=auth_headers(users["buyer"]))

        assert response.status_code == 403
        assert response.json()["detail"] == "Forbidden"

    def test_anonymous_cannot_create_product(self, client, users):
        assert client.post("/api/products", json=NEW_PRODUCT).status_code == 401

    def test_update_requires_all_fields(self, client, users, products):
        response = client.put(
            f"/api/products/{products['shirt'].id}",
            json={"name": "Renamed", "price": 100},
            headers=auth_headers(users["seller"])
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please fill in all required fields"

    def test_seller_updates_own_product(self, client, users, products):
        payload = {**NEW_PRODUCT, "name": "Premium T-shirt"}
        response = client.put(
            f"/api/products/{products['shirt'].id}",
            json=payload,
            headers=auth_headers(users["seller"])
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Premium T-shirt"
        assert response.json()["images"][0]["url"] == "https://cdn.example.com/sweater.jpg"

    def test_seller_cannot_update_foreign_product(self, client, users, products):
        response = client.put(
            f"/api/products/{products['dress'].id}",
            json=NEW_PRODUCT,
            headers=auth_headers(users["seller"])
        )

        assert response.status_code == 403

    def test_admin_updates_any_product(self, client, users, products):
        response = client.put(
            f"/api/products/{products['dress'].id}",
            json=NEW_PRODUCT,
            headers=auth_headers(users["admin"])
        )

        assert response.status_code == 200

    def test_update_missing_product(self, client, users, products):
        response = client.put("/api/products/missing", json=NEW_PRODUCT, headers=auth_headers(users["admin"]))

        assert response.status_code == 404

    def test_seller_cannot_delete_foreign_product(self, client, users, products):
        response = client.delete(f"/api/products/{products['dress'].id}", headers=auth_headers(users["seller"]))

        assert response.status_code == 403

    def test_admin_deletes_product(self, client, users, products):
        dress_id = products["dress"].id
        response = client.delete(f"/api/products/{dress_id}", headers=auth_headers(users["admin"]))

        assert response.status_code == 200
        assert client.get(f"/api/products/{dress_id}").status_code == 404


class TestRoleListings:
    """Списки товаров для панели администратора и продавца"""

    def test_admin_sees_all_products(self, client, users, products):
        response = client.get("/api/admin/products", headers=auth_headers(users["admin"]))

        assert response.status_code == 200
        assert len(response.json()) == 3

    def test_seller_sees_only_own_products(self, client, users, products):
        response = client.get("/api/seller/products", headers=auth_headers(users["seller"]))

        assert response.status_code == 200
        assert {p["name"] for p in response.json()} == {"Basic T-shirt", "Slim jeans"}

    def test_seller_cannot_open_admin_listing(self, client, users, products):
        assert client.get("/api/admin/products", headers=auth_headers(users["seller"])).status_code == 403

    def test_admin_cannot_open_seller_listing(self, client, users, products):
        assert client.get("/api/seller/products", headers=auth_headers(users["admin"])).status_code == 403
