"""
Tests for reservation endpoints.
"""

from bistro.config import settings


class TestCreateReservation:
    def test_create(self, client, reservation_payload, mailer):
        response = client.post("/reservations", json=reservation_payload())
        assert response.status_code == 201
        data = response.json()
        assert data["id"] is not None
        assert data["status"] == "pending"
        assert data["reservation_date"] == "2026-10-20"
        assert data["special_requests"] == "Window seat"

        assert len(mailer.sent) == 1
        assert mailer.sent[0]["to"] == "jane@example.com"

    def test_auto_confirm(self, client, db_session, seed_settings, reservation_payload):
        seed_settings.auto_confirm = 1
        db_session.commit()

        response = client.post("/reservations", json=reservation_payload())
        assert response.status_code == 201
        assert response.json()["status"] == "confirmed"

    def test_too_soon(self, client, reservation_payload):
        response = client.post(
            "/reservations",
            json=reservation_payload(reservation_date="2026-10-19", reservation_time="10:00"),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "MIN_ADVANCE_VIOLATED"

    def test_past(self, client, reservation_payload):
        response = client.post("/reservations", json=reservation_payload(reservation_date="2026-10-01"))
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "NOT_IN_FUTURE"

    def test_beyond_window(self, client, reservation_payload):
        response = client.post("/reservations", json=reservation_payload(reservation_date="2026-12-24"))
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "WINDOW_EXCEEDED"

    def test_invalid_fields(self, client, reservation_payload, mailer):
        response = client.post(
            "/reservations",
            json=reservation_payload(customer_phone="call me", party_size=0),
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_ERROR"
        fields = {f["field"] for f in detail["fields"]}
        assert {"customer_phone", "party_size"} <= fields
        assert mailer.sent == []

    def test_closed_day_rejected(self, client, db_session, seed_settings, reservation_payload, mailer):
        seed_settings.closed_days = '["tuesday"]'
        db_session.commit()

        response = client.post(
            "/reservations",
            json=reservation_payload(reservation_date="2026-10-20", reservation_time="03:17"),
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_ERROR"
        assert detail["fields"][0]["field"] == "reservation_time"

        assert client.get("/reservations").json() == []
        assert mailer.sent == []

    def test_time_must_be_offered_slot(self, client, reservation_payload):
        for time in ["03:17", "19:10", "21:00"]:
            response = client.post("/reservations", json=reservation_payload(reservation_time=time))
            assert response.status_code == 400
            assert response.json()["detail"]["fields"][0]["field"] == "reservation_time"

        offered = client.get("/availability", params={"date": "2026-10-20"}).json()["slots"]
        assert offered[-1]["time"] == "20:30"
        response = client.post("/reservations", json=reservation_payload(reservation_time="20:30"))
        assert response.status_code == 201

    def test_slot_full(self, client, db_session, seed_settings, make_reservation, reservation_payload):
        seed_settings.max_tables = 1
        db_session.commit()
        make_reservation(date="2026-10-20", time="19:00", party_size=2)

        response = client.post("/reservations", json=reservation_payload())
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "SLOT_UNAVAILABLE"

    def test_rate_limited(self, client, reservation_payload, monkeypatch):
        monkeypatch.setattr(settings, "reservation_rate_limit", 2)

        assert client.post("/reservations", json=reservation_payload()).status_code == 201
        assert client.post("/reservations", json=reservation_payload(reservation_time="19:30")).status_code == 201

        response = client.post("/reservations", json=reservation_payload(reservation_time="20:00"))
        assert response.status_code == 429
        assert response.json()["detail"]["code"] == "RATE_LIMITED"
        assert "retry-after" in response.headers

        assert len(client.get("/reservations").json()) == 2

    def test_spoofed_forwarding_headers_still_limited(self, client, limiter, reservation_payload, monkeypatch):
        """Client-supplied loopback addresses neither bypass nor reset the limit."""
        monkeypatch.setattr(settings, "reservation_rate_limit", 1)
        limiter.bypass_loopback = True

        assert client.post("/reservations", json=reservation_payload()).status_code == 201

        for headers in [
            {"X-Forwarded-For": "127.0.0.1"},
            {"X-Real-IP": "127.0.0.1"},
            {"X-Forwarded-For": "198.51.100.2", "X-Real-IP": "::1"},
        ]:
            response = client.post("/reservations", json=reservation_payload(), headers=headers)
            assert response.status_code == 429
            assert response.json()["detail"]["code"] == "RATE_LIMITED"

        assert len(client.get("/reservations").json()) == 1

    def test_real_ip_from_trusted_proxy(self, client, reservation_payload, monkeypatch):
        monkeypatch.setattr(settings, "reservation_rate_limit", 1)
        monkeypatch.setattr(settings, "trust_proxy_headers", True)

        headers = {"X-Real-IP": "203.0.113.7"}
        assert client.post("/reservations", json=reservation_payload(), headers=headers).status_code == 201
        assert client.post("/reservations", json=reservation_payload(), headers=headers).status_code == 429

        other = {"X-Real-IP": "198.51.100.2"}
        assert client.post("/reservations", json=reservation_payload(), headers=other).status_code == 201


class TestAdminReservations:
    def test_list_and_filter(self, client, make_reservation):
        make_reservation(date="2026-10-20", status="pending")
        make_reservation(date="2026-10-21", status="confirmed")

        assert len(client.get("/reservations").json()) == 2
        assert len(client.get("/reservations", params={"date": "2026-10-20"}).json()) == 1
        assert len(client.get("/reservations", params={"status": "confirmed"}).json()) == 1

    def test_get(self, client, make_reservation):
        reservation = make_reservation()
        response = client.get(f"/reservations/{reservation.id}")
        assert response.status_code == 200
        assert response.json()["customer_name"] == "Jane Doe"

    def test_get_not_found(self, client):
        assert client.get("/reservations/999").status_code == 404

    def test_confirm_sends_mail(self, client, make_reservation, mailer):
        reservation = make_reservation(status="pending")
        response = client.patch(
            f"/reservations/{reservation.id}/status",
            json={"status": "confirmed", "table_number": "4"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["table_number"] == "4"
        assert mailer.sent[0]["subject"] == "Your reservation is confirmed"

    def test_decline_with_reason(self, client, make_reservation, mailer):
        reservation = make_reservation(status="pending")
        response = client.patch(
            f"/reservations/{reservation.id}/status",
            json={"status": "cancelled", "reason": "Fully booked"},
        )
        assert response.status_code == 200
        assert "Fully booked" in mailer.sent[0]["text"]

    def test_invalid_transition(self, client, make_reservation):
        reservation = make_reservation(status="completed")
        response = client.patch(f"/reservations/{reservation.id}/status", json={"status": "confirmed"})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TRANSITION"

    def test_restore(self, client, make_reservation):
        reservation = make_reservation(status="cancelled")
        response = client.post(f"/reservations/{reservation.id}/restore")
        assert response.status_code == 200
        assert response.json()["status"] == "pending"

        assert client.post(f"/reservations/{reservation.id}/restore").status_code == 400

    def test_delete_frees_capacity(self, client, db_session, seed_settings, make_reservation, reservation_payload):
        seed_settings.max_tables = 1
        db_session.commit()
        existing = make_reservation(date="2026-10-20", time="19:00", party_size=4)

        assert client.post("/reservations", json=reservation_payload()).json()["detail"]["code"] == "SLOT_UNAVAILABLE"

        assert client.delete(f"/reservations/{existing.id}").status_code == 204
        assert client.get(f"/reservations/{existing.id}").status_code == 404
        assert client.post("/reservations", json=reservation_payload()).status_code == 201

    def test_delete_not_found(self, client):
        assert client.delete("/reservations/999").status_code == 404
