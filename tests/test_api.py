"""
HTTP API Tests

Tests cover:
- Response envelope and status codes per error category
- X-User-ID requirement on scoped endpoints
- Booking request, booking and listing calendar routes
- Health endpoints
"""

import pytest
from datetime import date
from fastapi.testclient import TestClient

from app.database import get_db
from app.main import app
from app.utils.dependencies import get_notifier_dependency
from app.utils.rate_limiter import limiter

from conftest import RecordingNotifier


@pytest.fixture
def api_notifier():
    return RecordingNotifier()


@pytest.fixture
def client(session_factory, api_notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier_dependency] = lambda: api_notifier
    limiter.enabled = False

    yield TestClient(app)

    app.dependency_overrides.clear()


def as_user(user):
    return {"X-User-ID": user.id}


def create_request(client, listing, guest, check_in="2024-01-01", check_out="2024-01-03", **extra):
    body = {"listing_id": listing.id, "check_in": check_in, "check_out": check_out}
    body.update(extra)
    return client.post("/api/booking-requests", json=body, headers=as_user(guest))


class TestEnvelope:

    def test_created_request_is_201_with_envelope(self, client, listing, guest, add_days):
        add_days(listing, {date(2024, 1, 1): 120, date(2024, 1, 2): 120})

        response = create_request(client, listing, guest, guests=2, message="Hi")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["data"]["status"] == "PENDING"
        assert body["data"]["total_price"] == "240.00"
        assert body["data"]["guests"] == 2
        assert response.headers["X-Request-ID"]

    def test_validation_error_is_400(self, client, listing, guest):
        response = create_request(client, listing, guest, check_in="2024-01-03", check_out="2024-01-01")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"]["code"] == "INVALID_RANGE"
        assert body["error"]["category"] == "validation"

    def test_conflict_is_409(self, client, listing, guest, add_days):
        add_days(listing, {date(2024, 1, 2): 100}, unavailable=[date(2024, 1, 2)])

        response = create_request(client, listing, guest)

        assert response.status_code == 409
        assert response.json()["error"]["details"] == {"dates": ["2024-01-02"]}

    def test_unknown_listing_is_404(self, client, guest):
        response = client.post("/api/booking-requests", json={
            "listing_id": "does-not-exist", "check_in": "2024-01-01", "check_out": "2024-01-03"
        }, headers=as_user(guest))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LISTING_NOT_FOUND"

    def test_anonymous_request_is_guest_not_found(self, client, listing):
        response = client.post("/api/booking-requests", json={
            "listing_id": listing.id, "check_in": "2024-01-01", "check_out": "2024-01-03"
        })
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "GUEST_NOT_FOUND"

    def test_mixed_offset_timestamps_are_accepted(self, client, listing, guest):
        response = create_request(
            client, listing, guest,
            check_in="2024-01-01T10:00:00Z", check_out="2024-01-03T10:00:00",
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert (data["check_in"], data["check_out"]) == ("2024-01-01", "2024-01-03")

    def test_malformed_body_is_rejected_by_schema(self, client, listing, guest):
        response = create_request(client, listing, guest, guests=0)
        assert response.status_code == 422

    def test_scoped_routes_require_user_header(self, client):
        assert client.get("/api/booking-requests").status_code == 401
        assert client.get("/api/bookings/some-id").status_code == 401


class TestBookingRequestRoutes:

    def test_accept_flow(self, client, listing, guest, host, api_notifier):
        request_id = create_request(client, listing, guest).json()["data"]["id"]

        response = client.patch(
            f"/api/booking-requests/{request_id}/status",
            json={"status": "ACCEPTED"},
            headers=as_user(host),
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"status": "ACCEPTED"}
        assert api_notifier.kinds() == ["created", "decision"]

        calendar = client.get(
            f"/api/listings/{listing.id}/calendar",
            params={"start": "2024-01-01", "end": "2024-01-04"},
        ).json()["data"]
        assert [d["is_available"] for d in calendar] == [False, False, True]

    def test_guest_cannot_accept(self, client, listing, guest):
        request_id = create_request(client, listing, guest).json()["data"]["id"]

        response = client.patch(
            f"/api/booking-requests/{request_id}/status",
            json={"status": "ACCEPTED"},
            headers=as_user(guest),
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "REQUEST_NOT_FOUND"

    def test_read_is_scoped(self, client, listing, guest, host, make_user):
        request_id = create_request(client, listing, guest).json()["data"]["id"]

        assert client.get(f"/api/booking-requests/{request_id}", headers=as_user(host)).status_code == 200
        stranger = client.get(f"/api/booking-requests/{request_id}", headers=as_user(make_user()))
        assert stranger.status_code == 404

    def test_list_with_status_filter(self, client, listing, guest, host):
        first = create_request(client, listing, guest).json()["data"]["id"]
        create_request(client, listing, guest, check_in="2024-02-01", check_out="2024-02-03")
        client.patch(f"/api/booking-requests/{first}/status", json={"status": "REJECTED"}, headers=as_user(host))

        response = client.get("/api/booking-requests", params={"status": "PENDING"}, headers=as_user(host))

        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["check_in"] == "2024-02-01"

    def test_alter_returns_new_request(self, client, listing, guest):
        request_id = create_request(client, listing, guest).json()["data"]["id"]

        response = client.post(
            f"/api/booking-requests/{request_id}/alter",
            json={"check_in": "2024-01-05", "check_out": "2024-01-07"},
            headers=as_user(guest),
        )

        assert response.status_code == 201
        assert response.json()["data"]["alteration_of"] == request_id


class TestBookingRoutes:

    @pytest.fixture
    def booking_id(self, client, listing, guest, host):
        request_id = create_request(client, listing, guest).json()["data"]["id"]
        client.patch(f"/api/booking-requests/{request_id}/status", json={"status": "ACCEPTED"}, headers=as_user(host))
        bookings = client.get("/api/bookings", params={"listing_id": listing.id}, headers=as_user(host))
        return bookings.json()["data"][0]["id"]

    def test_update_with_bad_dates(self, client, booking_id, guest):
        response = client.patch(
            f"/api/bookings/{booking_id}",
            json={"check_in": "2024-01-05", "check_out": "2024-01-02"},
            headers=as_user(guest),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"

    def test_update_with_mixed_offsets(self, client, booking_id, guest):
        response = client.patch(
            f"/api/bookings/{booking_id}",
            json={"check_in": "2024-01-02T15:00:00+00:00", "check_out": "2024-01-04T11:00:00"},
            headers=as_user(guest),
        )
        assert response.status_code == 200
        assert response.json()["data"]["check_out"] == "2024-01-04"

    def test_update_dates(self, client, booking_id, guest):
        response = client.patch(
            f"/api/bookings/{booking_id}",
            json={"check_in": "2024-01-02", "check_out": "2024-01-04"},
            headers=as_user(guest),
        )
        assert response.status_code == 200
        assert response.json()["data"]["check_in"] == "2024-01-02"

    def test_cancel(self, client, booking_id, guest):
        response = client.post(f"/api/bookings/{booking_id}/cancel", headers=as_user(guest))
        assert response.json()["data"]["status"] == "CANCELLED"

        again = client.post(f"/api/bookings/{booking_id}/cancel", headers=as_user(guest))
        assert again.status_code == 409

    def test_unknown_booking(self, client, guest):
        response = client.get("/api/bookings/missing", headers=as_user(guest))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "BOOKING_NOT_FOUND"


class TestListingRoutes:

    def test_host_edits_inventory(self, client, listing, host):
        response = client.put(
            f"/api/listings/{listing.id}/inventory",
            json={"days": [
                {"date": "2024-01-01", "price": "150.00"},
                {"date": "2024-01-02", "is_available": False},
            ]},
            headers=as_user(host),
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"updated": 2}

    def test_quote(self, client, listing, add_days):
        add_days(listing, {date(2024, 1, 1): 120})

        response = client.get(
            f"/api/listings/{listing.id}/quote",
            params={"check_in": "2024-01-01", "check_out": "2024-01-03"},
        )

        data = response.json()["data"]
        assert data["nights"] == 2
        assert data["total"] == "120.00"
        assert [p["source"] for p in data["nightly_prices"]] == ["inventory", "missing"]

    def test_calendar_window_must_be_ordered(self, client, listing):
        response = client.get(
            f"/api/listings/{listing.id}/calendar",
            params={"start": "2024-01-05", "end": "2024-01-01"},
        )
        assert response.status_code == 400


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_ready_checks_database(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["database"]["status"] == "up"

    def test_security_headers(self, client):
        response = client.get("/health/live")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
