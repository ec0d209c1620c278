"""
Health endpoint and service banner
"""
import pytest


@pytest.mark.asyncio
async def test_health_ok(client, settings):
    r = await client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["service"] == settings.SERVICE_NAME
    assert body["dependencies"] == {"database": "ok"}


@pytest.mark.asyncio
async def test_health_degraded_when_database_fails(client, app, monkeypatch):
    async def broken_ping():
        raise ConnectionError("connection refused by 10.0.0.5")

    monkeypatch.setattr(app.state.database, "ping", broken_ping)

    r = await client.get("/health")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "degraded"
    assert body["dependencies"]["database"] == "error"
    assert "10.0.0.5" not in r.text


@pytest.mark.asyncio
async def test_root_banner(client, settings):
    r = await client.get("/")
    assert r.json() == {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    r = await client.get("/api/v1/nope")
    assert r.status_code == 404
    assert "error" in r.json()
