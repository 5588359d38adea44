from decimal import Decimal

from src.api.dependencies import get_ledger
from src.application.seat_ledger import SeatLedger
from src.domain.roles import UserRole
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.main import app


def _signup(client, name, mobile, role, email):
    response = client.post(
        "/api/auth/signup",
        json={
            "name": name,
            "mobile": mobile,
            "role": role,
            "email": email,
            "password": "pass1234",
        },
    )
    assert response.status_code == 201
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


def _available(client, event_id):
    return client.get(f"/api/events/{event_id}").json()["event"]["available_seats"]


def test_booking_flow(client):
    _, organizer_headers = _signup(client, "Olu", "9000000001", "organizer", "olu@example.com")
    explorer, explorer_headers = _signup(client, "Ema", "9000000002", "explorer", "ema@example.com")

    event_response = client.post(
        "/api/events",
        json={
            "title": "Harbour Lights",
            "location": "Pier 4",
            "event_date": "2031-08-01T20:00:00+00:00",
            "ticket_price": "20.00",
            "total_seats": 10,
        },
        headers=organizer_headers,
    )
    assert event_response.status_code == 201
    event_id = event_response.json()["event"]["id"]
    assert _available(client, event_id) == 10

    response = client.post(
        "/api/bookings",
        json={"event_id": event_id, "number_of_seats": 5},
        headers=explorer_headers,
    )
    assert response.status_code == 201
    booking = response.json()["booking"]
    assert booking["status"] == "confirmed"
    assert booking["user_id"] == explorer["id"]
    assert Decimal(booking["total_price"]) == Decimal("100")
    assert _available(client, event_id) == 5

    overbook = client.post(
        "/api/bookings",
        json={"event_id": event_id, "number_of_seats": 6},
        headers=explorer_headers,
    )
    assert overbook.status_code == 400
    assert overbook.json()["detail"] == "Not enough seats available. Available: 5"
    assert _available(client, event_id) == 5

    cancel = client.put(f"/api/bookings/{booking['id']}/cancel", headers=explorer_headers)
    assert cancel.status_code == 200
    assert _available(client, event_id) == 10

    again = client.put(f"/api/bookings/{booking['id']}/cancel", headers=explorer_headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Booking already cancelled"
    assert _available(client, event_id) == 10


def test_booking_requires_token(client, make_event):
    event = make_event()

    missing = client.post("/api/bookings", json={"event_id": event.id, "number_of_seats": 1})
    assert missing.status_code == 401
    assert missing.json()["detail"] == "No token provided"

    garbage = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 1},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert garbage.status_code == 401
    assert garbage.json()["detail"] == "Invalid token"


def test_booking_validation_and_missing_event(client, make_user, make_event, auth_headers):
    headers = auth_headers(make_user())
    event = make_event()

    zero = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 0},
        headers=headers,
    )
    assert zero.status_code == 400
    assert zero.json()["detail"] == "At least 1 seat required"

    unknown = client.post(
        "/api/bookings",
        json={"event_id": "no-such-event", "number_of_seats": 1},
        headers=headers,
    )
    assert unknown.status_code == 404

    malformed = client.post("/api/bookings", json={"event_id": event.id}, headers=headers)
    assert malformed.status_code == 422


def test_cancel_rules(client, make_user, make_event, auth_headers, seat_state):
    owner = make_user()
    other = make_user()
    event = make_event(total_seats=4)

    booking_id = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 2},
        headers=auth_headers(owner),
    ).json()["booking"]["id"]

    forbidden = client.put(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(other))
    assert forbidden.status_code == 403

    missing = client.put("/api/bookings/nope/cancel", headers=auth_headers(owner))
    assert missing.status_code == 404

    assert seat_state(event.id) == (2, 2, 4)


def test_list_and_get_bookings(client, make_user, make_event, auth_headers):
    owner = make_user()
    other = make_user()
    event = make_event(total_seats=10, title="Gallery Opening")
    headers = auth_headers(owner)

    created = [
        client.post(
            "/api/bookings",
            json={"event_id": event.id, "number_of_seats": seats},
            headers=headers,
        ).json()["booking"]["id"]
        for seats in (1, 2)
    ]

    listing = client.get("/api/bookings", headers=headers)
    assert listing.status_code == 200
    bookings = listing.json()["bookings"]
    assert {item["id"] for item in bookings} == set(created)
    assert all(item["title"] == "Gallery Opening" for item in bookings)
    assert all(item["location"] == "Main Hall" for item in bookings)

    single = client.get(f"/api/bookings/{created[0]}", headers=headers)
    assert single.status_code == 200
    assert single.json()["booking"]["number_of_seats"] == 1

    hidden = client.get(f"/api/bookings/{created[0]}", headers=auth_headers(other))
    assert hidden.status_code == 404
    assert client.get("/api/bookings", headers=auth_headers(other)).json()["bookings"] == []


def test_checkin_flow(client, make_user, make_event, auth_headers):
    owner = make_user()
    other = make_user()
    event = make_event()
    headers = auth_headers(owner)
    booking_id = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 1},
        headers=headers,
    ).json()["booking"]["id"]

    checkin = client.post(
        f"/api/bookings/{booking_id}/checkin",
        json={"qr_code": "QR-123"},
        headers=headers,
    )
    assert checkin.status_code == 201
    assert checkin.json()["checkin"]["qr_code"] == "QR-123"

    listing = client.get(f"/api/bookings/{booking_id}/checkins", headers=headers)
    assert listing.status_code == 200
    assert [item["qr_code"] for item in listing.json()["checkins"]] == ["QR-123"]

    assert client.get(
        f"/api/bookings/{booking_id}/checkins", headers=auth_headers(other)
    ).status_code == 403
    assert client.post(
        f"/api/bookings/{booking_id}/checkin", json={}, headers=auth_headers(other)
    ).status_code == 404

    client.put(f"/api/bookings/{booking_id}/cancel", headers=headers)
    after_cancel = client.post(
        f"/api/bookings/{booking_id}/checkin", json={}, headers=headers
    )
    assert after_cancel.status_code == 400


def test_organizer_token_can_book_too(client, make_user, make_event, auth_headers):
    organizer = make_user(role=UserRole.ORGANIZER)
    event = make_event()

    response = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 1},
        headers=auth_headers(organizer),
    )
    assert response.status_code == 201


def test_busy_inventory_returns_conflict(
    client, flaky_session_factory, make_user, make_event, auth_headers, seat_state
):
    owner = make_user()
    headers = auth_headers(owner)
    event = make_event(total_seats=5)
    booking_id = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 2},
        headers=headers,
    ).json()["booking"]["id"]

    app.dependency_overrides[get_ledger] = lambda: SeatLedger(
        flaky_session_factory(failures=3), max_attempts=3, retry_delay_seconds=0
    )

    booked = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 1},
        headers=headers,
    )
    assert booked.status_code == 409
    assert booked.json()["detail"] == "Seat inventory is busy. Please retry."
    assert seat_state(event.id) == (3, 2, 5)

    cancelled = client.put(f"/api/bookings/{booking_id}/cancel", headers=headers)
    assert cancelled.status_code == 409
    assert cancelled.json()["detail"] == "Seat inventory is busy. Please retry."
    assert seat_state(event.id) == (3, 2, 5)


def test_checkin_holds_the_booking_row(client, make_user, make_event, auth_headers, monkeypatch):
    owner = make_user()
    headers = auth_headers(owner)
    event = make_event()
    booking_id = client.post(
        "/api/bookings",
        json={"event_id": event.id, "number_of_seats": 1},
        headers=headers,
    ).json()["booking"]["id"]

    locked = []
    real_lock = BookingRepository.lock_booking

    def _recording_lock(self, target_id):
        locked.append(target_id)
        return real_lock(self, target_id)

    monkeypatch.setattr(BookingRepository, "lock_booking", _recording_lock)

    response = client.post(f"/api/bookings/{booking_id}/checkin", json={}, headers=headers)
    assert response.status_code == 201
    assert locked == [booking_id]

    missing = client.post("/api/bookings/nope/checkin", json={}, headers=headers)
    assert missing.status_code == 404
