"""Tests for booking endpoints."""

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


def _payload(property_id, customer_id, check_in="2024-06-10", check_out="2024-06-13", **extra) -> dict:
    return {
        "property_id": str(property_id),
        "customer_id": str(customer_id),
        "check_in": check_in,
        "check_out": check_out,
        **extra,
    }


# ---------------------------------------------------------------------------
# POST /api/v1/bookings
# ---------------------------------------------------------------------------


class TestCreateBooking:
    async def test_create_success(self, client: AsyncClient, live_property, customer_id) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json=_payload(
                live_property.id,
                customer_id,
                guests=2,
                customer_name="Ana Lima",
                customer_email="ana.lima@staybook.io",
            ),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["property_id"] == str(live_property.id)
        assert data["status"] == "confirmed"
        assert data["payment_status"] == "paid"
        assert data["nights"] == 3
        assert data["rate_source"] == "final"
        assert Decimal(data["subtotal"]) == Decimal("345")
        assert Decimal(data["service_fee"]) == Decimal("41")
        assert Decimal(data["taxes"]) == Decimal("28")
        assert Decimal(data["total_amount"]) == Decimal("414")
        assert data["customer_email"] == "ana.lima@staybook.io"

    async def test_overlap_returns_409(self, client: AsyncClient, live_property, customer_id) -> None:
        first = await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))
        assert first.status_code == 201

        response = await client.post(
            "/api/v1/bookings",
            json=_payload(live_property.id, customer_id, "2024-06-12", "2024-06-15"),
        )
        assert response.status_code == 409
        body = response.json()
        assert "not available" in body["detail"]
        assert body["conflicting_booking_ids"] == [first.json()["id"]]

    async def test_back_to_back_allowed(self, client: AsyncClient, live_property, customer_id) -> None:
        await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))
        response = await client.post(
            "/api/v1/bookings",
            json=_payload(live_property.id, customer_id, "2024-06-13", "2024-06-15"),
        )
        assert response.status_code == 201

    async def test_zero_nights_returns_422(self, client: AsyncClient, live_property, customer_id) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json=_payload(live_property.id, customer_id, "2024-06-10", "2024-06-10"),
        )
        assert response.status_code == 422
        assert "Check-out date must be after check-in date" in response.json()["errors"]

    async def test_too_many_guests(self, client: AsyncClient, live_property, customer_id) -> None:
        response = await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id, guests=5))
        assert response.status_code == 422

    async def test_unknown_property_returns_404(self, client: AsyncClient, customer_id) -> None:
        response = await client.post("/api/v1/bookings", json=_payload(uuid.uuid4(), customer_id))
        assert response.status_code == 404

    async def test_malformed_body(self, client: AsyncClient, live_property, customer_id) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json=_payload(live_property.id, customer_id, check_in="not-a-date"),
        )
        assert response.status_code == 422

    async def test_voucher_discount(self, client: AsyncClient, live_property, make_voucher, customer_id) -> None:
        voucher = await make_voucher(live_property.id, discount_value=20)
        response = await client.post(
            "/api/v1/bookings",
            json=_payload(live_property.id, customer_id, voucher_code=voucher.code.lower()),
        )
        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["discount_amount"]) == Decimal("69")
        assert Decimal(data["total_amount"]) == Decimal("345")
        assert data["voucher_id"] == str(voucher.id)

        again = await client.post(
            "/api/v1/bookings",
            json=_payload(live_property.id, customer_id, "2024-06-20", "2024-06-22", voucher_code=voucher.code),
        )
        assert again.status_code == 409
        assert again.json()["reason"] == "limit_reached"


# ---------------------------------------------------------------------------
# Quote, read, and status endpoints
# ---------------------------------------------------------------------------


class TestQuote:
    async def test_quote(self, client: AsyncClient, live_property) -> None:
        response = await client.post(
            "/api/v1/bookings/quote",
            json={"property_id": str(live_property.id), "check_in": "2024-06-10", "check_out": "2024-06-13"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["nights"] == 3
        assert Decimal(data["rate_per_night"]) == Decimal("115")
        assert Decimal(data["total"]) == Decimal("414")

    async def test_quote_with_unknown_voucher(self, client: AsyncClient, live_property) -> None:
        response = await client.post(
            "/api/v1/bookings/quote",
            json={
                "property_id": str(live_property.id),
                "check_in": "2024-06-10",
                "check_out": "2024-06-13",
                "voucher_code": "NOPE",
            },
        )
        assert response.status_code == 409
        assert response.json()["reason"] == "not_found"


class TestReadBookings:
    async def test_get_and_list(self, client: AsyncClient, live_property, customer_id) -> None:
        created = (await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))).json()

        response = await client.get(f"/api/v1/bookings/{created['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

        response = await client.get("/api/v1/bookings", params={"customer_id": str(customer_id)})
        assert response.json()["total"] == 1

        response = await client.get("/api/v1/bookings", params={"status": "cancelled"})
        assert response.json()["total"] == 0

    async def test_list_by_owner(self, client: AsyncClient, live_property, owner_id, customer_id) -> None:
        await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))

        response = await client.get("/api/v1/bookings", params={"owner_id": str(owner_id)})
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["property_id"] == str(live_property.id)

        response = await client.get("/api/v1/bookings", params={"owner_id": str(uuid.uuid4())})
        assert response.json()["total"] == 0

    async def test_get_unknown(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/bookings/{uuid.uuid4()}")
        assert response.status_code == 404


class TestStatusChanges:
    async def test_cancel_frees_dates(self, client: AsyncClient, live_property, customer_id) -> None:
        created = (await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))).json()

        response = await client.post(
            f"/api/v1/bookings/{created['id']}/cancel",
            json={"cancelled_by": str(customer_id)},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancelled_by"] == str(customer_id)

        response = await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))
        assert response.status_code == 201

    async def test_cancel_twice_conflicts(self, client: AsyncClient, live_property, customer_id) -> None:
        created = (await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))).json()
        await client.post(f"/api/v1/bookings/{created['id']}/cancel", json={})
        response = await client.post(f"/api/v1/bookings/{created['id']}/cancel", json={})
        assert response.status_code == 409

    async def test_complete(self, client: AsyncClient, live_property, customer_id) -> None:
        created = (await client.post("/api/v1/bookings", json=_payload(live_property.id, customer_id))).json()
        response = await client.post(f"/api/v1/bookings/{created['id']}/complete")
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["completed_at"] is not None
