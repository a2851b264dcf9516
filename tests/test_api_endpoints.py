"""
API Endpoint Tests
"""
import pytest


@pytest.mark.asyncio
async def test_root_endpoint(client):
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["installations"] == ["provence", "occitanie", "aquitaine"]
    assert "metrics" in data["endpoints"]


@pytest.mark.asyncio
async def test_openapi_schema(client):
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    data = response.json()
    assert "/data/{installation_id}" in data["paths"]
    assert "/metrics" not in data["paths"]


class TestData:
    @pytest.mark.asyncio
    async def test_all_installations(self, client):
        response = await client.get("/data")

        assert response.status_code == 200
        data = response.json()
        assert list(data) == ["provence", "occitanie", "aquitaine"]
        assert data["provence"]["power_production_kw"] == 0.0
        assert data["provence"]["inverter_statuses"] == [1, 1, 1, 1]
        # No dataset: default record
        assert data["aquitaine"]["anomaly_type"] == "NORMAL"
        assert data["aquitaine"]["anomaly_severity"] == "low"

    @pytest.mark.asyncio
    async def test_one_installation(self, client):
        response = await client.get("/data/occitanie")

        assert response.status_code == 200
        assert response.json()["installation_id"] == "occitanie"

    @pytest.mark.asyncio
    async def test_unknown_installation(self, client):
        response = await client.get("/data/atlantis")

        assert response.status_code == 404
        data = response.json()
        assert data["error"]["code"] == "NOT_FOUND"
        assert data["error"]["path"] == "/data/atlantis"
        assert data["available_installations"] == ["provence", "occitanie", "aquitaine"]
        assert "X-Request-ID" in response.headers


class TestStatus:
    @pytest.mark.asyncio
    async def test_status(self, client):
        response = await client.get("/status")

        assert response.status_code == 200
        data = response.json()
        assert data["is_playing"] is True
        assert data["indices"] == {"provence": 0, "occitanie": 0, "aquitaine": None}
        assert data["total_records"] == {"provence": 5, "occitanie": 3, "aquitaine": 0}
        assert data["uptime"] >= 0
        assert data["config"]["update_interval_ms"] == 3_600_000
        assert data["config"]["metrics_refresh_interval_ms"] == 3_600_000
        assert data["config"]["mode"] == "sequential"
        assert data["config"]["installations"] == ["provence", "occitanie", "aquitaine"]


class TestJump:
    @pytest.mark.asyncio
    async def test_jump(self, client):
        response = await client.post("/control/jump", json={"index": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["new_index"] == 2
        assert data["current_data"]["provence"]["power_production_kw"] == 200.0
        assert data["current_data"]["occitanie"]["power_production_kw"] == 200.0

    @pytest.mark.asyncio
    async def test_jump_clamps_to_last_record(self, client):
        response = await client.post("/control/jump", json={"index": 100})

        assert response.status_code == 200
        data = response.json()
        assert data["new_index"] == 100
        assert data["current_data"]["provence"]["power_production_kw"] == 400.0
        assert data["current_data"]["occitanie"]["power_production_kw"] == 200.0

        status = (await client.get("/status")).json()
        assert status["indices"] == {"provence": 4, "occitanie": 2, "aquitaine": None}

    @pytest.mark.asyncio
    async def test_jump_with_huge_index(self, client):
        response = await client.post("/control/jump", json={"index": 10**400})

        assert response.status_code == 200
        data = response.json()
        assert data["new_index"] == 2**63 - 1
        assert data["current_data"]["provence"]["power_production_kw"] == 400.0

        status = (await client.get("/status")).json()
        assert status["indices"] == {"provence": 4, "occitanie": 2, "aquitaine": None}

    @pytest.mark.asyncio
    async def test_jump_refreshes_metrics(self, client):
        await client.post("/control/jump", json={"index": 3})
        response = await client.get("/metrics")

        assert 'solar_power_production_kw{farm="provence"} 300.0' in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"index": -1}, {"index": "3"}, {"index": True}, {"index": None}, {}])
    async def test_invalid_index(self, client, body):
        response = await client.post("/control/jump", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "BAD_REQUEST"
        assert data["error"]["details"]["validation_errors"]
        assert data["error"]["message"].startswith("Validation failed")

    @pytest.mark.asyncio
    async def test_invalid_index_leaves_cursors(self, client):
        await client.post("/control/jump", json={"index": 2})
        await client.post("/control/jump", json={"index": "4"})

        status = (await client.get("/status")).json()
        assert status["indices"]["provence"] == 2


class TestControl:
    @pytest.mark.asyncio
    async def test_pause_and_resume(self, client):
        response = await client.post("/control/pause")
        assert response.status_code == 200
        assert response.json()["status"]["is_playing"] is False
        assert (await client.get("/health")).status_code == 503

        response = await client.post("/control/resume")
        assert response.status_code == 200
        assert response.json()["status"]["is_playing"] is True
        assert (await client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_pause_twice(self, client):
        await client.post("/control/pause")
        response = await client.post("/control/pause")

        assert response.status_code == 200
        assert response.json()["status"]["is_playing"] is False


class TestInstallations:
    @pytest.mark.asyncio
    async def test_list(self, client):
        response = await client.get("/installations")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["installations"][0]["id"] == "provence"
        assert data["installations"][0]["panels"] == 5000


class TestMetrics:
    @pytest.mark.asyncio
    async def test_exposition(self, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "# TYPE solar_power_production_kw gauge" in response.text
        assert 'solar_panel_count{farm="aquitaine"} 4200.0' in response.text
        assert 'solar_inverter_status{farm="occitanie",inverter_id="3"} 1.0' in response.text

    @pytest.mark.asyncio
    async def test_requests_are_counted(self, client, runtime):
        await client.get("/data/provence")

        count = runtime.registry.collector_registry.get_sample_value(
            "solar_simulator_http_requests_total",
            {"method": "GET", "endpoint": "/data/{installation_id}", "status_code": "200"},
        )
        assert count == 1.0


class TestNotStarted:
    """Application whose runtime has not built the engine yet."""

    @pytest.mark.asyncio
    async def test_data_unavailable(self, idle_client):
        response = await idle_client.get("/data")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_known_installation_unavailable(self, idle_client):
        assert (await idle_client.get("/data/provence")).status_code == 503

    @pytest.mark.asyncio
    async def test_unknown_installation_still_404(self, idle_client):
        assert (await idle_client.get("/data/atlantis")).status_code == 404

    @pytest.mark.asyncio
    async def test_control_unavailable(self, idle_client):
        assert (await idle_client.post("/control/jump", json={"index": 1})).status_code == 503
        assert (await idle_client.post("/control/pause")).status_code == 503

    @pytest.mark.asyncio
    async def test_metrics_still_served(self, idle_client):
        response = await idle_client.get("/metrics")

        assert response.status_code == 200
        assert "# HELP solar_power_production_kw" in response.text
