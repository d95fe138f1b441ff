"""
Tests for booking admission.
"""

from datetime import datetime

import pytest

from bistro.services.admission import admit
from bistro.services.errors import BookingRejected, ErrorCode
from bistro.services.rate_limit import InMemoryRateLimitStore, RateLimiter
from bistro.services.slots import ReservationConfig


NOW = datetime(2026, 10, 19, 9, 0)
CONFIG = ReservationConfig()


def payload(**overrides):
    data = {
        "customer_name": "Jane Doe",
        "customer_email": "Jane@Example.com",
        "customer_phone": "+49 151 1234-5678",
        "reservation_date": "2026-10-20",
        "reservation_time": "19:00",
        "party_size": 4,
    }
    data.update(overrides)
    return data


def rejected_code(data, config=CONFIG, **kwargs):
    with pytest.raises(BookingRejected) as exc_info:
        admit(data, config, NOW, **kwargs)
    return exc_info.value.code


class TestAdmission:
    def test_valid_request_is_pending(self):
        admitted = admit(payload(), CONFIG, NOW)
        assert admitted.status == "pending"
        assert admitted.starts_at == datetime(2026, 10, 20, 19, 0)
        assert admitted.data.customer_email == "jane@example.com"
        assert admitted.data.customer_phone == "+4915112345678"

    def test_auto_confirm(self):
        admitted = admit(payload(), ReservationConfig(auto_confirm=True), NOW)
        assert admitted.status == "confirmed"

    def test_not_in_future(self):
        assert rejected_code(payload(reservation_date="2026-10-19", reservation_time="09:00")) == ErrorCode.NOT_IN_FUTURE
        assert rejected_code(payload(reservation_date="2026-10-18")) == ErrorCode.NOT_IN_FUTURE

    def test_min_advance(self):
        assert rejected_code(
            payload(reservation_date="2026-10-19", reservation_time="10:30")
        ) == ErrorCode.MIN_ADVANCE_VIOLATED

    def test_min_advance_boundary_accepted(self):
        admitted = admit(payload(reservation_date="2026-10-19", reservation_time="11:00"), CONFIG, NOW)
        assert admitted.starts_at == datetime(2026, 10, 19, 11, 0)

    def test_window_boundary(self):
        evening = datetime(2026, 10, 19, 19, 0)
        admitted = admit(payload(reservation_date="2026-11-18", reservation_time="19:00"), CONFIG, evening)
        assert admitted.starts_at == datetime(2026, 11, 18, 19, 0)

        with pytest.raises(BookingRejected) as exc_info:
            admit(payload(reservation_date="2026-11-18", reservation_time="19:30"), CONFIG, evening)
        assert exc_info.value.code == ErrorCode.WINDOW_EXCEEDED

    def test_field_validation(self):
        with pytest.raises(BookingRejected) as exc_info:
            admit(payload(customer_email="not-an-email", customer_name="J"), CONFIG, NOW)
        error = exc_info.value
        assert error.code == ErrorCode.VALIDATION_ERROR
        fields = {f["field"] for f in error.fields}
        assert {"customer_email", "customer_name"} <= fields

    def test_party_size_above_configured_max(self):
        with pytest.raises(BookingRejected) as exc_info:
            admit(payload(party_size=8), ReservationConfig(max_party_size=6), NOW)
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.fields[0]["field"] == "party_size"

    def test_missing_date(self):
        data = payload()
        del data["reservation_date"]
        assert rejected_code(data) == ErrorCode.VALIDATION_ERROR

    def test_unparseable_date(self):
        assert rejected_code(payload(reservation_date="20/10/2026")) == ErrorCode.VALIDATION_ERROR


class TestOpeningHours:
    def test_closed_weekday(self):
        config = ReservationConfig(closed_weekdays=frozenset({1}))
        with pytest.raises(BookingRejected) as exc_info:
            admit(payload(reservation_date="2026-10-20", reservation_time="19:00"), config, NOW)
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.fields[0]["field"] == "reservation_time"

    @pytest.mark.parametrize("time", ["03:17", "10:30", "19:15", "21:00", "23:30"])
    def test_off_grid_or_outside_hours(self, time):
        with pytest.raises(BookingRejected) as exc_info:
            admit(payload(reservation_time=time), CONFIG, NOW)
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.fields[0]["field"] == "reservation_time"

    @pytest.mark.parametrize("time", ["11:00", "14:30", "20:30"])
    def test_grid_times_accepted(self, time):
        assert admit(payload(reservation_time=time), CONFIG, NOW).status == "pending"

    def test_custom_hours_and_step(self):
        config = ReservationConfig(start_time="17:00", end_time="22:00", slot_duration_minutes=60)
        assert admit(payload(reservation_time="18:00"), config, NOW).status == "pending"
        assert rejected_code(payload(reservation_time="18:30"), config=config) == ErrorCode.VALIDATION_ERROR


class TestCheckOrder:
    def test_timing_checked_before_fields(self):
        bad = payload(reservation_date="2026-10-18", customer_email="nope")
        assert rejected_code(bad) == ErrorCode.NOT_IN_FUTURE

    def test_rate_limit_checked_first(self):
        limiter = RateLimiter(InMemoryRateLimitStore(), bypass_loopback=False, clock=lambda: 1000.0)
        kwargs = {"limiter": limiter, "identifier": "reservation@203.0.113.7", "max_requests": 1, "window_ms": 60000}

        admit(payload(), CONFIG, NOW, **kwargs)

        bad = payload(reservation_date="2026-10-18", customer_email="nope")
        with pytest.raises(BookingRejected) as exc_info:
            admit(bad, CONFIG, NOW, **kwargs)
        assert exc_info.value.code == ErrorCode.RATE_LIMITED
        assert exc_info.value.status_code == 429
