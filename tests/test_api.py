import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from tablehold.api.dependencies import get_clock
from tablehold.api.reservations import get_session_factory
from tablehold.config import get_settings
from tablehold.database import get_db
from tablehold.main import create_app
from tablehold.notifier import get_notifier
from tablehold.redis_client import get_redis
from tests.conftest import BAR, DAY, MAIN_HALL, RIVERSIDE, SMOKING, add_hold


@pytest.fixture
def app(session_factory, redis_client, notifier, settings, clock):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return app


@pytest.fixture
async def client(app, regions):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


def hold_payload(**overrides) -> dict:
    payload = {
        "date": DAY.isoformat(),
        "time_slot": "19:00",
        "region_id": RIVERSIDE,
        "session_token": "session-a",
    }
    payload.update(overrides)
    return payload


def reservation_payload(**overrides) -> dict:
    payload = hold_payload()
    payload.update(
        {
            "customer_name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "+442079460958",
            "party_size": 4,
            "children_count": 1,
        }
    )
    payload.update(overrides)
    return payload


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestRegionsApi:
    async def test_list(self, client):
        response = await client.get("/api/v1/regions")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [BAR, MAIN_HALL, RIVERSIDE, SMOKING]

    async def test_get(self, client):
        response = await client.get(f"/api/v1/regions/{BAR}")

        assert response.status_code == 200
        assert response.json()["allow_children"] is False

    async def test_get_unknown(self, client):
        response = await client.get("/api/v1/regions/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestAvailabilityApi:
    async def test_slots(self, client):
        response = await client.get(
            "/api/v1/availability/slots", params={"date": DAY.isoformat()}
        )

        assert response.status_code == 200
        slots = response.json()
        assert len(slots) == 9
        assert slots[0]["time_slot"] == "18:00"

    async def test_slots_out_of_range(self, client):
        response = await client.get(
            "/api/v1/availability/slots", params={"date": "2025-08-01"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    async def test_slots_malformed_date(self, client):
        response = await client.get(
            "/api/v1/availability/slots", params={"date": "tomorrow"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    async def test_check_reports_reason(self, client):
        response = await client.post(
            "/api/v1/availability/check",
            json={
                "date": DAY.isoformat(),
                "time_slot": "19:00",
                "region_id": BAR,
                "party_size": 3,
                "children_count": 1,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["available"] is False
        assert "children" in body["reason"]

    async def test_alternatives(self, client):
        response = await client.get(
            "/api/v1/availability/alternatives",
            params={
                "date": DAY.isoformat(),
                "time_slot": "19:00",
                "party_size": 2,
                "wants_smoking": "true",
            },
        )

        assert response.status_code == 200
        alternatives = response.json()
        assert {a["region"]["id"] for a in alternatives} == {SMOKING}
        assert alternatives[0]["available"] is True

    async def test_alternatives_requires_party_size(self, client):
        response = await client.get(
            "/api/v1/availability/alternatives",
            params={"date": DAY.isoformat(), "time_slot": "19:00"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    async def test_alternatives_with_children(self, client):
        response = await client.get(
            "/api/v1/availability/alternatives",
            params={
                "date": DAY.isoformat(),
                "time_slot": "20:00",
                "party_size": 4,
                "children_count": 2,
            },
        )

        assert response.status_code == 200
        assert {a["region"]["id"] for a in response.json()} == {MAIN_HALL, RIVERSIDE}


class TestHoldApi:
    async def test_acquire(self, client):
        response = await client.post("/api/v1/reservations/hold", json=hold_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["hold_id"]
        assert body["expires_at"].startswith("2025-07-20T12:05:00")

    async def test_acquire_conflict(self, client):
        first = await client.post(
            "/api/v1/reservations/hold", json=hold_payload(region_id=BAR)
        )
        second = await client.post(
            "/api/v1/reservations/hold",
            json=hold_payload(region_id=BAR, session_token="session-b", time_slot="20:00"),
        )

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"] == "conflict"

    async def test_acquire_invalid_slot(self, client):
        response = await client.post(
            "/api/v1/reservations/hold", json=hold_payload(time_slot="19:15")
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    async def test_active_holds_and_release(self, client):
        await client.post("/api/v1/reservations/hold", json=hold_payload())

        holds = await client.get("/api/v1/reservations/hold/session-a")
        assert holds.status_code == 200
        assert [h["status"] for h in holds.json()] == ["HELD"]

        released = await client.delete("/api/v1/reservations/hold/session-a")
        assert released.status_code == 200
        assert released.json()["success"] is True

        again = await client.delete("/api/v1/reservations/hold/session-a")
        assert again.status_code == 404


class TestReservationApi:
    async def test_confirm_flow(self, client):
        await client.post("/api/v1/reservations/hold", json=hold_payload())

        response = await client.post(
            "/api/v1/reservations", json=reservation_payload()
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "CONFIRMED"
        assert body["end_time"] == "21:00"

        fetched = await client.get(f"/api/v1/reservations/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["status"] == "CONFIRMED"

        listed = await client.get("/api/v1/reservations/by-email/ADA@example.com")
        assert [r["id"] for r in listed.json()] == [body["id"]]

    async def test_confirm_without_hold(self, client):
        response = await client.post(
            "/api/v1/reservations", json=reservation_payload()
        )

        assert response.status_code == 400
        assert "No valid hold" in response.json()["detail"]

    async def test_confirm_ineligible(self, client):
        await client.post(
            "/api/v1/reservations/hold", json=hold_payload(region_id=BAR)
        )

        response = await client.post(
            "/api/v1/reservations", json=reservation_payload(region_id=BAR)
        )

        assert response.status_code == 422
        assert response.json()["error"] == "ineligible"

    async def test_get_hold_by_id(self, client):
        created = await client.post("/api/v1/reservations/hold", json=hold_payload())

        response = await client.get(
            f"/api/v1/reservations/{created.json()['hold_id']}"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "HELD"
        assert response.json()["session_token"] == "session-a"

    async def test_cancel(self, client):
        created = await client.post("/api/v1/reservations/hold", json=hold_payload())
        hold_id = created.json()["hold_id"]

        response = await client.delete(f"/api/v1/reservations/{hold_id}")
        assert response.status_code == 200

        missing = await client.get(f"/api/v1/reservations/{hold_id}")
        assert missing.status_code == 404

    async def test_list_confirmed(self, client):
        await client.post("/api/v1/reservations/hold", json=hold_payload())
        await client.post("/api/v1/reservations", json=reservation_payload())

        response = await client.get("/api/v1/reservations")

        assert response.status_code == 200
        assert len(response.json()) == 1

    async def test_sweep(self, client, db, clock):
        await add_hold(db, clock, region_id=BAR, token="old", expires_in_minutes=1)
        clock.advance(minutes=1)

        response = await client.post("/api/v1/reservations/sweep")

        assert response.status_code == 200
        assert response.json() == {"expired": 1}


@pytest.fixture
def ws_client() -> TestClient:
    return TestClient(create_app())


class TestWebSocket:
    def test_subscribe_and_ping(self, ws_client):
        # The socket endpoint uses the process-wide notifier.
        with ws_client.websocket_connect("/api/v1/ws/availability") as ws:
            ws.send_json({"type": "subscribe", "date": DAY.isoformat()})
            assert ws.receive_json() == {"type": "subscribed", "date": DAY.isoformat()}
            assert len(get_notifier().subscribers_for(DAY)) == 1

            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"

            ws.send_json({"type": "unsubscribe", "date": DAY.isoformat()})
            assert ws.receive_json()["type"] == "unsubscribed"
            assert get_notifier().subscribers_for(DAY) == []

    def test_bad_messages(self, ws_client):
        with ws_client.websocket_connect("/api/v1/ws/availability") as ws:
            ws.send_json({"type": "subscribe"})
            assert ws.receive_json() == {"type": "error", "detail": "date is required"}

            ws.send_json({"type": "dance"})
            assert ws.receive_json()["type"] == "error"
