"""
Integration tests for the HP router.

Tests all endpoints in api/routers/hp.py:
- GET /hp: Current HP after a regen tick
- PUT /hp: Overwrite HP
- POST /hp/navigation: Report a route change
"""

import pytest
from fastapi import Header
from fastapi.testclient import TestClient

from api import deps
from application.ports import HpRegenState
from backend.core.hp_regen import HpRegenRegistry
from infrastructure.hp_state_store import InMemoryHpStateStore


@pytest.fixture
def hp_registry(clock):
    """Every user starts at 50/100 HP, last regenerated when the test began."""
    started = clock()
    return HpRegenRegistry(
        lambda user_id: InMemoryHpStateStore(
            HpRegenState(hp=50, max_hp=100, last_regen_ms=started)
        ),
        clock=clock,
    )


@pytest.fixture
def client(app, override_deps, hp_registry):
    override_deps(deps.get_hp_regen_registry, hp_registry)
    return TestClient(app)


@pytest.mark.integration
class TestHpRouter:

    def test_get_regenerates(self, client, clock):
        clock.advance(minutes=3)

        response = client.get("/hp")

        assert response.status_code == 200
        data = response.json()
        assert data["hp"] == pytest.approx(53)
        assert data["max_hp"] == 100
        assert data["route"] == "/"
        assert data["regenerating"] is True

    def test_set_hp(self, client, clock):
        clock.advance(minutes=10)

        data = client.put("/hp", json={"hp": 20, "max_hp": 120}).json()

        assert data["hp"] == 20
        assert data["max_hp"] == 120
        assert data["last_regen_ms"] == clock()

    def test_set_hp_above_max(self, client):
        assert client.put("/hp", json={"hp": 150, "max_hp": 100}).status_code == 422

    def test_dungeon_route_stops_regen(self, client, clock):
        data = client.post("/hp/navigation", json={"route": "/pve-dungeons/crypt"}).json()
        assert data["regenerating"] is False

        clock.advance(minutes=5)
        assert client.get("/hp").json()["hp"] == 50

        client.post("/hp/navigation", json={"route": "/home"})
        clock.advance(minutes=1)
        assert client.get("/hp").json()["hp"] == pytest.approx(51)


@pytest.mark.integration
class TestHpPerUser:

    @pytest.fixture
    def client(self, app, override_deps, hp_registry):
        async def user_from_header(x_test_user: str = Header(...)):
            return x_test_user

        app.dependency_overrides[deps.get_current_user] = user_from_header
        override_deps(deps.get_hp_regen_registry, hp_registry)
        return TestClient(app)

    def test_damage_only_affects_caller(self, client, clock):
        client.put("/hp", json={"hp": 10, "max_hp": 100}, headers={"X-Test-User": "alice"})
        clock.advance(minutes=1)

        alice = client.get("/hp", headers={"X-Test-User": "alice"}).json()
        bob = client.get("/hp", headers={"X-Test-User": "bob"}).json()

        assert alice["hp"] == pytest.approx(11)
        assert bob["hp"] == pytest.approx(51)

    def test_dungeon_only_stops_caller(self, client, clock):
        client.post(
            "/hp/navigation",
            json={"route": "/dungeon-battle/1"},
            headers={"X-Test-User": "alice"},
        )
        clock.advance(minutes=2)

        alice = client.get("/hp", headers={"X-Test-User": "alice"}).json()
        bob = client.get("/hp", headers={"X-Test-User": "bob"}).json()

        assert alice["hp"] == 50
        assert alice["regenerating"] is False
        assert bob["hp"] == pytest.approx(52)
        assert bob["route"] == "/"
