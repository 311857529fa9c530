import pytest
from httpx import ASGITransport, AsyncClient

from linkguard.config.settings import config
from linkguard.main import app


def client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health_check():
    """Test public health endpoint"""
    async with client() as ac:
        response = await ac.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_parse_accepts_public_link_and_routes_it():
    async with client() as ac:
        response = await ac.post(
            "/external/parse",
            json={"link": "youwee://download?v=1&url=https://youtube.com/watch?v=abc123"},
        )
    assert response.status_code == 200
    body = response.json()
    assert body["route"] == "youtube"
    assert body["request"]["url"] == "https://youtube.com/watch?v=abc123"
    assert body["request"]["target"] == "auto"
    assert body["request"]["enqueue_options"] == {"media_type": "video", "quality": "best"}


@pytest.mark.asyncio
async def test_parse_rejection_is_silent():
    """A private target is not an HTTP error, just an empty result"""
    async with client() as ac:
        response = await ac.post(
            "/external/parse",
            json={"link": "youwee://download?v=1&url=http://192.168.1.5/video.mp4"},
        )
    assert response.status_code == 200
    assert response.json() == {"request": None, "route": None}


@pytest.mark.asyncio
async def test_pending_links_are_queued_then_consumed_once():
    link = "youwee://download?v=1&url=https://example.com/clip"
    async with client() as ac:
        await ac.post("/external/links/consume")

        queued = await ac.post(
            "/external/links",
            json={"argv": ["youwee.exe", f'"{link}"'], "urls": [link, "https://example.com"]},
        )
        assert queued.status_code == 200
        assert queued.json() == {"queued": 1, "pending": 1}

        first = await ac.post("/external/links/consume")
        second = await ac.post("/external/links/consume")

    assert first.json() == {"links": [link]}
    assert second.json() == {"links": []}


@pytest.mark.asyncio
async def test_retry_plan_clamps_limits():
    async with client() as ac:
        response = await ac.post(
            "/retry/plan",
            json={"error": {"message": "HTTP Error 503: Service Unavailable"}, "max_attempts": 0, "delay_seconds": 500},
        )
    assert response.status_code == 200
    body = response.json()
    assert body["should_retry"] is True
    assert body["classification"]["outcome"] == "retryable"
    assert body["max_attempts"] == 3
    assert body["delay_seconds"] == 60


@pytest.mark.asyncio
async def test_admin_config_requires_key_when_configured():
    original_key = config.api.admin_api_key
    config.api.admin_api_key = "secret"

    try:
        async with client() as ac:
            denied = await ac.get("/admin/config")
            allowed = await ac.get("/admin/config", headers={"X-API-Key": "secret"})
        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["retry"]["max_attempts"]["max"] == 10
    finally:
        config.api.admin_api_key = original_key
