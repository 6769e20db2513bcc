"""
Tests for application wiring: health checks, tracing headers and the lookup state.
"""
from adboard.core.state import LookupState
from adboard.main import app


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Process-Time" in response.headers
    assert response.headers["X-Correlation-ID"]


def test_api_info_lists_endpoints(client):
    assert client.get("/api-info").json()["endpoints"]["quote"] == "/pricing/quote"


def test_lookups_load_lazily(client):
    lookups = app.state.lookups
    client.post("/billboards/", json={"name": "One", "size": "12x4", "city": "Misrata", "level": "B"})
    assert not lookups.loaded

    values = client.get("/settings/lookups").json()

    assert lookups.loaded
    assert values["cities"] == ["Misrata"]
    assert values["levels"] == ["B"]
    assert values["sizes"] == ["4x12"]
    assert values["categories"] == ["regular", "city", "marketer", "corporate"]


def test_refresh_picks_up_new_rows(client):
    client.get("/settings/lookups")
    client.post("/billboards/", json={"name": "Two", "size": "6x18", "city": "Benghazi"})

    assert client.get("/settings/lookups").json()["cities"] == []

    refreshed = client.post("/settings/refresh").json()
    assert refreshed["cities"] == ["Benghazi"]


def test_lookup_state_is_read_from_the_app(client, monkeypatch):
    replacement = LookupState()
    monkeypatch.setattr(app.state, "lookups", replacement)
    client.post("/billboards/", json={"name": "Three", "size": "4x12", "city": "Sirte"})

    assert client.get("/settings/lookups").json()["cities"] == ["Sirte"]
    assert replacement.loaded
    assert replacement.cities == ["Sirte"]
