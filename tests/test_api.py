"""Tests for API endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from shortlink.errors import PersistenceError
from shortlink.service import RegistryService
from shortlink.storage import MemoryBlobBackend, RecordStore
from web_app import create_app


@pytest.fixture
def app(service):
    """Create test FastAPI app."""
    config = Config(base_url="http://testserver")

    return create_app(service_instance=service, config=config)


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


class UnreadableBackend(MemoryBlobBackend):
    fail_reads = False

    async def read(self, key):
        if self.fail_reads:
            raise PersistenceError("blob unreadable")
        return await super().read(key)


@pytest.mark.asyncio
class TestAPIEndpoints:
    """Test API endpoints."""

    async def test_shorten_url(self, client, sample_urls):
        """Test POST /api/shorten."""
        response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[0]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["original_url"] == sample_urls[0]
        assert data["short_url"] == f"http://testserver/{data['short_code']}"
        assert data["validity_minutes"] == 30
        assert data["is_active"] is True

    async def test_shorten_with_custom_code(self, client, sample_urls):
        """Test POST /api/shorten with custom code."""
        response = await client.post(
            "/api/shorten",
            json={
                "url": sample_urls[0],
                "custom_code": "test123",
                "validity_minutes": 5,
            }
        )

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == "test123"
        assert data["validity_minutes"] == 5

    async def test_shorten_invalid_url(self, client):
        """Test POST /api/shorten with invalid URL."""
        response = await client.post(
            "/api/shorten",
            json={"url": "not-a-url"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_url"

    async def test_shorten_unsupported_protocol(self, client):
        response = await client.post("/api/shorten", json={"url": "ftp://example.com"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "unsupported_protocol"

    async def test_shorten_invalid_validity(self, client, sample_urls):
        response = await client.post("/api/shorten", json={"url": sample_urls[0], "validity_minutes": 0})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_validity_period"

    async def test_shorten_duplicate_custom_code(self, client, sample_urls):
        """Test POST /api/shorten with duplicate custom code."""
        custom_code = "duplicate123"

        await client.post(
            "/api/shorten",
            json={"url": sample_urls[0], "custom_code": custom_code}
        )

        response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[1], "custom_code": custom_code}
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "short_code_taken"

    async def test_batch(self, client, sample_urls):
        response = await client.post(
            "/api/shorten/batch",
            json={"urls": [
                {"url": sample_urls[0]},
                {"url": ""},
                {"url": sample_urls[2]},
            ]}
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["successful"]) == 2
        assert len(data["failed"]) == 1
        assert data["failed"][0]["request"]["url"] == ""
        assert data["failed"][0]["error"] == "invalid_url"

    async def test_get_url_info(self, client, sample_urls):
        """Test GET /api/urls/{short_code}."""
        create_response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[0]}
        )
        short_code = create_response.json()["short_code"]

        response = await client.get(f"/api/urls/{short_code}")

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == short_code
        assert data["original_url"] == sample_urls[0]
        assert data["click_count"] == 0

    async def test_get_url_info_not_found(self, client):
        """Test GET /api/urls/{short_code} for nonexistent code."""
        response = await client.get("/api/urls/nonexistent")

        assert response.status_code == 404

    async def test_get_url_info_expired(self, client, sample_urls, clock):
        create_response = await client.post("/api/shorten", json={"url": sample_urls[0], "validity_minutes": 1})
        short_code = create_response.json()["short_code"]
        clock.advance(minutes=2)

        response = await client.get(f"/api/urls/{short_code}")

        assert response.status_code == 404

    async def test_list_urls(self, client, sample_urls):
        for url in sample_urls:
            await client.post("/api/shorten", json={"url": url})

        response = await client.get("/api/urls")

        assert response.status_code == 200
        assert len(response.json()) == 3

    async def test_delete(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        response = await client.delete(f"/api/urls/id/{created['id']}")
        assert response.status_code == 204

        response = await client.delete(f"/api/urls/id/{created['id']}")
        assert response.status_code == 404

    async def test_sweep(self, client, sample_urls, clock):
        await client.post("/api/shorten", json={"url": sample_urls[0], "validity_minutes": 1})
        clock.advance(minutes=2)

        first = await client.post("/api/sweep")
        second = await client.post("/api/sweep")

        assert first.json() == {"removed": 1}
        assert second.json() == {"removed": 0}

    async def test_validate_short_code(self, client, sample_urls):
        await client.post("/api/shorten", json={"url": sample_urls[0], "custom_code": "taken1"})

        free = await client.get("/api/validate/short-code", params={"code": "free123"})
        taken = await client.get("/api/validate/short-code", params={"code": "taken1"})
        bad = await client.get("/api/validate/short-code", params={"code": "ab"})

        assert free.json()["is_valid"] is True
        assert taken.json()["error"] == "short_code_taken"
        assert bad.json()["error"] == "invalid_short_code_format"

    async def test_health_check(self, client):
        """Test GET /api/health."""
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["backend"] == "memory"

    async def test_statistics(self, client, sample_urls):
        """Test GET /api/stats."""
        await client.post("/api/shorten", json={"url": sample_urls[0]})

        response = await client.get("/api/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total_urls"] == 1
        assert data["active_urls"] == 1
        assert data["total_clicks"] == 0


@pytest.mark.asyncio
class TestResolution:
    """Test the redirect route and click analytics."""

    async def test_redirect_records_click(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()
        short_code = created["short_code"]

        response = await client.get(
            f"/{short_code}",
            headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == sample_urls[0]

        analytics = (await client.get(f"/api/urls/{short_code}/analytics")).json()
        assert analytics["total_clicks"] == 1
        assert analytics["top_sources"] == [["direct", 1]]
        click = analytics["recent_clicks"][0]
        assert click["user_agent"] == "pytest-agent"
        assert click["ip"] == "203.0.113.5"

    async def test_redirect_with_source(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        await client.get(f"/{created['short_code']}?src=statistics_page", follow_redirects=False)

        analytics = (await client.get(f"/api/urls/{created['short_code']}/analytics")).json()
        assert analytics["top_sources"] == [["statistics_page", 1]]

    async def test_redirect_unknown_code(self, client):
        response = await client.get("/nothere", follow_redirects=False)

        assert response.status_code == 404

    async def test_redirect_expired_code(self, client, sample_urls, clock):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0], "validity_minutes": 1})).json()
        clock.advance(seconds=61)

        response = await client.get(f"/{created['short_code']}", follow_redirects=False)

        assert response.status_code == 404

    async def test_analytics_not_found(self, client):
        response = await client.get("/api/urls/missing/analytics")

        assert response.status_code == 404


@pytest.mark.asyncio
class TestStorageFailures:
    """Storage failures on read paths come back as error bodies."""

    @pytest.fixture
    async def failing_client(self, clock):
        backend = UnreadableBackend()
        service = RegistryService(RecordStore(backend), clock=clock)
        app = create_app(service_instance=service, config=Config(base_url="http://testserver"))
        backend.fail_reads = True

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
            yield ac

    @pytest.mark.parametrize("path", [
        "/api/urls/abc123",
        "/api/urls/abc123/analytics",
        "/api/validate/short-code?code=abc123",
        "/abc123",
    ])
    async def test_read_failure_maps_to_error_response(self, failing_client, path):
        response = await failing_client.get(path, follow_redirects=False)

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "persistence_error"
