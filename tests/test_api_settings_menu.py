"""
Tests for settings and menu endpoints.
"""


class TestReservationSettings:
    def test_defaults_without_row(self, client):
        response = client.get("/settings/reservations")
        assert response.status_code == 200
        data = response.json()
        assert data["start_time"] == "11:00"
        assert data["end_time"] == "21:00"
        assert data["max_capacity"] == 15
        assert data["min_advance_hours"] == 2
        assert data["closed_weekdays"] == []
        assert data["auto_confirm"] is False

    def test_update_changes_availability(self, client):
        response = client.put(
            "/settings/reservations",
            json={
                "start_time": "17:00",
                "end_time": "22:00",
                "slot_duration_minutes": 60,
                "max_capacity": 4,
                "closed_days": ["tuesday"],
            },
        )
        assert response.status_code == 200
        assert response.json()["closed_weekdays"] == [1]

        data = client.get("/availability", params={"date": "2026-10-19"}).json()
        assert [slot["time"] for slot in data["slots"]] == ["17:00", "18:00", "19:00", "20:00", "21:00"]
        assert data["slots"][0]["remainingCapacity"] == 4

        data = client.get("/availability", params={"date": "2026-10-20"}).json()
        assert data["slots"] == []

    def test_update_twice_keeps_single_row(self, client):
        client.put("/settings/reservations", json={"max_capacity": 5})
        client.put("/settings/reservations", json={"max_capacity": 6})
        assert client.get("/settings/reservations").json()["max_capacity"] == 6

    def test_rejects_inverted_hours(self, client):
        response = client.put("/settings/reservations", json={"start_time": "22:00", "end_time": "11:00"})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "CONFIG_ERROR"

    def test_rejects_unknown_weekday(self, client):
        response = client.put("/settings/reservations", json={"closed_days": ["funday"]})
        assert response.status_code == 400


class TestMenu:
    def test_lists_available_items(self, client, seed_menu):
        response = client.get("/menu")
        assert response.status_code == 200
        ids = {item["id"] for item in response.json()}
        assert ids == {"pho-bo", "bun-cha", "spring-rolls"}

    def test_include_unavailable_and_category(self, client, seed_menu):
        data = client.get("/menu", params={"include_unavailable": True, "category": "starters"}).json()
        by_id = {item["id"]: item for item in data}
        assert set(by_id) == {"spring-rolls", "seasonal-soup"}
        assert by_id["seasonal-soup"]["available"] is False

    def test_get_item(self, client, seed_menu):
        response = client.get("/menu/pho-bo")
        assert response.status_code == 200
        assert response.json()["price"] == 12.5

    def test_get_item_not_found(self, client):
        assert client.get("/menu/ghost").status_code == 404


class TestRestaurantSettings:
    def test_defaults_without_row(self, client):
        response = client.get("/settings/restaurant")
        assert response.status_code == 200
        data = response.json()
        assert data["restaurant_name"] == "Bistro"
        assert data["tax_rate"] == 0.0875
        assert data["business_hours"]["monday"] == {"open": "11:00", "close": "21:00"}
        assert data["business_hours"]["sunday"] == {"open": "12:00", "close": "20:00"}

    def test_update_drives_checkout_and_pricing(self, client, seed_menu, order_payload):
        response = client.put(
            "/settings/restaurant",
            json={
                "restaurant_name": "Pho Corner",
                "business_hours": {
                    "monday": {"open": "11:00", "close": "14:00"},
                    "sunday": {"closed": True},
                },
                "tax_rate": 0.1,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["restaurant_name"] == "Pho Corner"
        assert data["tax_rate"] == 0.1
        assert data["business_hours"]["monday"] == {"open": "11:00", "close": "14:00"}
        assert data["business_hours"]["tuesday"] is None
        assert data["business_hours"]["sunday"] is None

        slots = client.get("/orders/time-slots").json()["slots"]
        assert {s["date"] for s in slots} == {"2026-10-19"}
        assert slots[-1]["time"] == "14:00"

        order = client.post("/orders", json=order_payload()).json()
        assert order["tax"] == 2.5
        assert order["total"] == 27.5

    def test_empty_hours_and_tax_fall_back_to_defaults(self, client):
        hours = {"monday": {"open": "09:00", "close": "10:00"}}
        client.put("/settings/restaurant", json={"business_hours": hours, "tax_rate": 0.2})
        data = client.put("/settings/restaurant", json={}).json()
        assert data["tax_rate"] == 0.0875
        assert data["business_hours"]["friday"] == {"open": "11:00", "close": "22:00"}

    def test_update_twice_keeps_single_row(self, client):
        client.put("/settings/restaurant", json={"tax_rate": 0.05})
        client.put("/settings/restaurant", json={"tax_rate": 0.06})
        assert client.get("/settings/restaurant").json()["tax_rate"] == 0.06

    def test_rejects_inverted_hours(self, client):
        response = client.put(
            "/settings/restaurant",
            json={"business_hours": {"monday": {"open": "22:00", "close": "11:00"}}},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "CONFIG_ERROR"
        assert client.get("/settings/restaurant").json()["business_hours"]["monday"]["open"] == "11:00"

    def test_rejects_unknown_weekday_and_bad_time(self, client):
        for hours in [{"funday": {"open": "11:00", "close": "14:00"}}, {"monday": {"open": "11:00", "close": "25:00"}}]:
            response = client.put("/settings/restaurant", json={"business_hours": hours})
            assert response.status_code == 400
            assert response.json()["detail"]["code"] == "CONFIG_ERROR"

    def test_rejects_tax_rate_out_of_range(self, client):
        assert client.put("/settings/restaurant", json={"tax_rate": 1.5}).status_code == 422
        assert client.put("/settings/restaurant", json={"tax_rate": -0.1}).status_code == 422


class TestMenuAdmin:
    def test_create(self, client, seed_menu, order_payload):
        response = client.post(
            "/menu",
            json={"id": "banh-mi", "name": "Banh Mi", "price": 9.499, "category": "mains"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["price"] == 9.5
        assert data["available"] is True

        assert "banh-mi" in {item["id"] for item in client.get("/menu").json()}

        order = client.post("/orders", json=order_payload(items=[{"id": "banh-mi", "quantity": 1}])).json()
        assert order["subtotal"] == 9.5

    def test_create_duplicate(self, client, seed_menu):
        response = client.post("/menu", json={"id": "pho-bo", "name": "Pho Bo", "price": 1})
        assert response.status_code == 409

    def test_create_invalid(self, client):
        assert client.post("/menu", json={"id": "Banh Mi", "name": "Banh Mi", "price": 9}).status_code == 422
        assert client.post("/menu", json={"id": "banh-mi", "name": "Banh Mi", "price": -1}).status_code == 422

    def test_replace(self, client, seed_menu, order_payload):
        response = client.put(
            "/menu/pho-bo",
            json={"name": "Pho Dac Biet", "price": 14.0, "category": "mains", "popular": True},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Pho Dac Biet"
        assert response.json()["popular"] is True

        order = client.post("/orders", json=order_payload()).json()
        assert order["subtotal"] == 28.0
        assert order["items"][0]["name"] == "Pho Dac Biet"

    def test_toggle_available(self, client, seed_menu, order_payload):
        response = client.patch("/menu/pho-bo", json={"available": False})
        assert response.status_code == 200
        assert response.json()["available"] is False
        assert response.json()["price"] == 12.5

        assert "pho-bo" not in {item["id"] for item in client.get("/menu").json()}
        response = client.post("/orders", json=order_payload())
        assert response.json()["detail"]["code"] == "ITEM_UNAVAILABLE"

        client.patch("/menu/pho-bo", json={"available": True})
        assert client.post("/orders", json=order_payload()).status_code == 201

    def test_patch_rejects_null_required_field(self, client, seed_menu):
        assert client.patch("/menu/pho-bo", json={"name": None}).status_code == 422
        assert client.get("/menu/pho-bo").json()["name"] == "Pho Bo"

    def test_delete(self, client, seed_menu, order_payload):
        assert client.delete("/menu/pho-bo").status_code == 204
        assert client.get("/menu/pho-bo").status_code == 404
        assert client.delete("/menu/pho-bo").status_code == 404

        response = client.post("/orders", json=order_payload())
        assert response.json()["detail"]["code"] == "ITEM_NOT_FOUND"

    def test_not_found(self, client):
        body = {"name": "Ghost", "price": 1.0}
        assert client.put("/menu/ghost", json=body).status_code == 404
        assert client.patch("/menu/ghost", json={"available": False}).status_code == 404
