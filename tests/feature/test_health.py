import pytest


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_reports_database_status(self, async_client):
        response = await async_client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["env"] == "test"
        assert body["services"]["database"]["status"] == "healthy"
