"""
Tests for the menu catalog: categories, items and availability.
"""


def item_payload(category_id, **overrides):
    payload = {"name": "Caesar salad", "category_id": category_id, "price_cents": 900, "preparation_minutes": 10}
    payload.update(overrides)
    return payload


class TestCategories:
    """Test /api/menu/categories."""

    def test_create_and_list_sorted(self, client, auth_headers, customer_headers, seed_category):
        response = client.post(
            "/api/menu/categories",
            json={"name": "Starters", "sort_order": 0, "color": "#ff8800"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["color"] == "#ff8800"

        listed = client.get("/api/menu/categories", headers=customer_headers).json()
        assert [c["name"] for c in listed] == ["Starters", "Mains"]

    def test_duplicate_name_ignores_case(self, client, auth_headers, seed_category):
        response = client.post("/api/menu/categories", json={"name": "mains"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Category already exists"

    def test_bad_color(self, client, auth_headers):
        response = client.post("/api/menu/categories", json={"name": "Drinks", "color": "blue"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"].startswith("color:")

    def test_manager_cannot_create(self, client, manager_headers):
        response = client.post("/api/menu/categories", json={"name": "Drinks"}, headers=manager_headers)
        assert response.status_code == 403

    def test_requires_login(self, client):
        assert client.get("/api/menu/categories").status_code == 401


class TestMenuItems:
    """Test /api/menu/items."""

    def test_create_with_variants_add_ons_and_recipe(self, client, auth_headers, seed_menu, seed_stock):
        response = client.post(
            "/api/menu/items",
            json=item_payload(
                seed_menu["pizza"].category_id,
                variants=[{"name": "Half", "price_cents": 600}, {"name": "Full", "price_cents": 900}],
                add_on_item_ids=[seed_menu["extra_cheese"].id],
                ingredients=[{"inventory_item_id": seed_stock["cheese"].id, "quantity": 0.05}],
            ),
            headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["category_name"] == "Mains"
        assert [v["name"] for v in data["variants"]] == ["Half", "Full"]
        assert data["add_ons"] == [
            {"menu_item_id": seed_menu["extra_cheese"].id, "name": "Extra cheese", "price_cents": 150}
        ]
        assert data["ingredients"] == [{"inventory_item_id": seed_stock["cheese"].id, "quantity": 0.05}]
        assert data["is_available"] is True

    def test_get_item(self, client, customer_headers, seed_menu):
        data = client.get(f"/api/menu/items/{seed_menu['pizza'].id}", headers=customer_headers).json()
        assert data["name"] == "Margherita pizza"
        assert {v["name"] for v in data["variants"]} == {"Regular", "Large"}

    def test_get_missing(self, client, customer_headers):
        assert client.get("/api/menu/items/999", headers=customer_headers).status_code == 404

    def test_unknown_category(self, client, auth_headers):
        response = client.post("/api/menu/items", json=item_payload(999), headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Category not found"

    def test_unknown_add_on(self, client, auth_headers, seed_category):
        response = client.post(
            "/api/menu/items", json=item_payload(seed_category.id, add_on_item_ids=[999]), headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Add-on menu item not found"

    def test_unknown_ingredient(self, client, auth_headers, seed_category):
        response = client.post(
            "/api/menu/items",
            json=item_payload(seed_category.id, ingredients=[{"inventory_item_id": 999, "quantity": 1}]),
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Inventory item not found"

    def test_duplicate_variant_names(self, client, auth_headers, seed_category):
        response = client.post(
            "/api/menu/items",
            json=item_payload(
                seed_category.id,
                variants=[{"name": "Full", "price_cents": 900}, {"name": "Full", "price_cents": 950}],
            ),
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Variant names must be unique"

    def test_negative_price(self, client, auth_headers, seed_category):
        response = client.post(
            "/api/menu/items", json=item_payload(seed_category.id, price_cents=-1), headers=auth_headers
        )
        assert response.status_code == 400

    def test_list_filters(self, client, waiter_headers, seed_menu, db_session):
        seed_menu["burger"].is_available = False
        db_session.commit()

        everything = client.get("/api/menu/items", headers=waiter_headers).json()
        assert [i["name"] for i in everything["items"]] == ["Classic burger", "Extra cheese", "Margherita pizza"]
        assert everything["pagination"]["total"] == 3

        available = client.get("/api/menu/items?is_available=true", headers=waiter_headers).json()
        assert "Classic burger" not in [i["name"] for i in available["items"]]

        search = client.get("/api/menu/items?search=PIZZA", headers=waiter_headers).json()
        assert [i["name"] for i in search["items"]] == ["Margherita pizza"]

        paged = client.get("/api/menu/items?page=2&limit=2", headers=waiter_headers).json()
        assert [i["name"] for i in paged["items"]] == ["Margherita pizza"]
        assert paged["pagination"]["has_prev"] is True
        assert paged["pagination"]["has_next"] is False


class TestAvailability:
    """Test PATCH /api/menu/items/{id}/availability."""

    def test_kitchen_marks_sold_out(self, client, kitchen_headers, cashier_headers, seed_menu):
        burger = seed_menu["burger"]
        response = client.patch(
            f"/api/menu/items/{burger.id}/availability", json={"is_available": False}, headers=kitchen_headers
        )
        assert response.status_code == 200
        assert response.json()["is_available"] is False

        order = client.post(
            "/api/orders",
            json={"order_type": "takeaway", "items": [{"menu_item_id": burger.id, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert order.status_code == 400
        assert order.json()["message"] == "Classic burger is currently unavailable"

    def test_customer_cannot_change(self, client, customer_headers, seed_menu):
        response = client.patch(
            f"/api/menu/items/{seed_menu['burger'].id}/availability",
            json={"is_available": False},
            headers=customer_headers,
        )
        assert response.status_code == 403
