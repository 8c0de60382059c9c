from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from fastapi.testclient import TestClient

from conftest import build_booking_payload

MISSING_ID = "64b7f0c2a1b2c3d4e5f60718"


def _utc_midnight(days_from_today: int) -> datetime:
    day = datetime.now(timezone.utc).date() + timedelta(days=days_from_today)
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def test_create_booking_persists_pending_record(client: TestClient) -> None:
    payload = build_booking_payload()
    response = client.post("/api/bookings", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Booking submitted successfully! We will contact you soon."
    assert set(body["booking"]) == {"id", "name", "email", "createdAt"}
    assert body["booking"]["email"] == "maria.lopez@travelmail.com"

    fetched = client.get(f"/api/bookings/{body['booking']['id']}")
    assert fetched.status_code == 200
    booking = fetched.json()["data"]
    assert booking["_id"] == body["booking"]["id"]
    assert booking["status"] == "pending"
    assert booking["name"] == payload["name"]
    assert booking["phone"] == payload["phone"]
    assert booking["adults"] == 2
    assert booking["children"] == 1
    assert booking["confirmTrip"] == "paris"
    assert booking["message"] == payload["message"]
    assert booking["createdAt"] == body["booking"]["createdAt"]


def test_create_booking_accepts_string_numbers_and_defaults_children(client: TestClient) -> None:
    payload = build_booking_payload(adults="3")
    del payload["children"]
    del payload["message"]
    response = client.post("/api/bookings", json=payload)
    assert response.status_code == 201

    booking = client.get(f"/api/bookings/{response.json()['booking']['id']}").json()["data"]
    assert booking["adults"] == 3
    assert booking["children"] == 0
    assert booking["message"] == ""
    assert booking["tourId"] == ""


def test_short_name_is_rejected(client: TestClient) -> None:
    response = client.post("/api/bookings", json=build_booking_payload(name="J"))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["field"] == "name"
    assert "2-100 characters" in body["errors"][0]["msg"]


def test_invalid_booking_lists_violations_in_order(client: TestClient) -> None:
    response = client.post(
        "/api/bookings",
        json={"email": "not-an-email", "adults": 0, "children": 25, "travelDate": "next tuesday"},
    )
    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["errors"]]
    assert fields == ["name", "phone", "email", "adults", "children", "travelDate", "confirmTrip"]


def test_message_longer_than_limit_is_rejected(client: TestClient) -> None:
    response = client.post("/api/bookings", json=build_booking_payload(message="x" * 1001))
    assert response.status_code == 400
    assert response.json()["errors"][0]["msg"] == "Message too long"


def test_travel_date_yesterday_is_rejected_regardless_of_time(client: TestClient) -> None:
    late_yesterday = _utc_midnight(0) - timedelta(seconds=1)
    response = client.post(
        "/api/bookings",
        json=build_booking_payload(travelDate=late_yesterday.isoformat().replace("+00:00", "Z")),
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Travel date cannot be in the past"
    assert body["errors"][0]["field"] == "travelDate"


def test_travel_date_today_at_midnight_is_accepted(client: TestClient) -> None:
    response = client.post(
        "/api/bookings",
        json=build_booking_payload(travelDate=_utc_midnight(0).isoformat()),
    )
    assert response.status_code == 201


def test_malformed_json_is_a_validation_error(client: TestClient) -> None:
    response = client.post(
        "/api/bookings",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_search_matches_name_or_email_case_insensitively(client: TestClient, create_booking) -> None:
    by_name = create_booking(name="Sofia Andersson", email="travel.fan@mailbox.com")
    by_email = create_booking(name="Kenji Sato", email="sofia.trips@mailbox.com")
    create_booking(name="Liam Brown", email="liam@mailbox.com")

    response = client.get("/api/bookings", params={"search": "  SOFIA "})
    ids = {item["id"] for item in response.json()["data"]}
    assert ids == {by_name["id"], by_email["id"]}
    assert response.json()["pagination"]["total"] == 2


def test_search_text_is_matched_literally(client: TestClient, create_booking) -> None:
    create_booking(name="Liam Brown")
    response = client.get("/api/bookings", params={"search": ".*"})
    assert response.json()["data"] == []


def test_status_filter(client: TestClient, create_booking) -> None:
    confirmed = create_booking(name="Confirmed Guest")
    create_booking(name="Pending Guest")
    client.put(f"/api/bookings/{confirmed['id']}/status", json={"status": "confirmed"})

    response = client.get("/api/bookings", params={"status": "confirmed"})
    assert [item["id"] for item in response.json()["data"]] == [confirmed["id"]]


def test_pagination_past_last_page(client: TestClient, create_booking) -> None:
    for index in range(5):
        create_booking(name=f"Guest Number {index}")

    page = client.get("/api/bookings", params={"page": 2, "limit": 2}).json()
    assert len(page["data"]) == 2
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    empty = client.get("/api/bookings", params={"page": 9, "limit": 2}).json()
    assert empty["success"] is True
    assert empty["data"] == []
    assert empty["pagination"] == {"page": 9, "limit": 2, "total": 5, "pages": 3}


def test_default_limit_is_fifty(client: TestClient) -> None:
    pagination = client.get("/api/bookings").json()["pagination"]
    assert pagination == {"page": 1, "limit": 50, "total": 0, "pages": 0}


def test_sort_order_reverses_sequence(client: TestClient, create_booking) -> None:
    for name in ("Bea Costa", "Ada King", "Cal Young"):
        create_booking(name=name)

    ascending = client.get("/api/bookings", params={"sortBy": "name", "sortOrder": "asc"}).json()["data"]
    descending = client.get("/api/bookings", params={"sortBy": "name", "sortOrder": "desc"}).json()["data"]
    asc_names = [item["name"] for item in ascending]
    assert asc_names == ["Ada King", "Bea Costa", "Cal Young"]
    assert [item["name"] for item in descending] == list(reversed(asc_names))


def test_update_booking_status(client: TestClient, create_booking) -> None:
    booking = create_booking()
    response = client.put(f"/api/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Booking status updated successfully"
    assert body["data"]["status"] == "confirmed"


def test_update_booking_status_rejects_unknown_value(client: TestClient, create_booking) -> None:
    booking = create_booking()
    response = client.put(f"/api/bookings/{booking['id']}/status", json={"status": "shipped"})
    assert response.status_code == 400
    assert response.json()["errors"][0] == {"field": "status", "msg": "Invalid status", "value": "shipped"}


def test_update_status_of_missing_booking_returns_404(client: TestClient) -> None:
    response = client.put(f"/api/bookings/{MISSING_ID}/status", json={"status": "cancelled"})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Booking not found"}


def test_get_missing_booking_returns_404(client: TestClient) -> None:
    response = client.get(f"/api/bookings/{MISSING_ID}")
    assert response.status_code == 404
    assert response.json()["message"] == "Booking not found"


def test_delete_missing_booking_returns_404(client: TestClient) -> None:
    response = client.delete(f"/api/bookings/{MISSING_ID}")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Booking not found"}


def test_delete_booking(client: TestClient, create_booking) -> None:
    booking = create_booking()
    response = client.delete(f"/api/bookings/{booking['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Booking deleted successfully"}
    assert client.get(f"/api/bookings/{booking['id']}").status_code == 404


def test_deleting_tour_leaves_booking_reference(client: TestClient, create_tour, create_booking) -> None:
    tour = create_tour()
    booking = create_booking(tourId=tour["id"])
    client.delete(f"/api/tours/{tour['id']}")

    fetched = client.get(f"/api/bookings/{booking['id']}").json()["data"]
    assert fetched["tourId"] == tour["id"]
