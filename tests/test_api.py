"""Tests for the API controller and the FastAPI endpoints."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from protocol_kernel.api.app import create_app
from protocol_kernel.api.controller import ApiRequest, ProtocolApiController
from protocol_kernel.healing.engine import HealingEngine
from protocol_kernel.models.config import ProtocolConfig
from protocol_kernel.models.healing import HealingConfig
from protocol_kernel.orchestrator.protocol import ProtocolOrchestrator


def _make_orchestrator(**config) -> ProtocolOrchestrator:
    healing = HealingEngine(config=HealingConfig(
        network_retry_delay=0,
        resource_cleanup_delay=0,
        rate_limit_delay=0,
        collect_garbage=False,
    ))
    return ProtocolOrchestrator(config=ProtocolConfig(**config), healing_engine=healing)


class _BrokenOrchestrator(ProtocolOrchestrator):
    def get_health_check(self):
        raise RuntimeError("metrics backend unavailable")


@pytest.fixture
def orchestrator():
    return _make_orchestrator()


@pytest.fixture
def client(orchestrator):
    """Create a test client with a fresh orchestrator."""
    return TestClient(create_app(orchestrator=orchestrator))


class TestApiController:
    def setup_method(self):
        self.orchestrator = _make_orchestrator()
        self.controller = ProtocolApiController(self.orchestrator)

    def test_health_check_envelope(self):
        response = asyncio.run(self.controller.health_check())
        assert response.success is True
        assert response.error is None
        assert response.data.status in ("healthy", "degraded")
        assert response.timestamp is not None

    def test_errors_become_envelopes(self):
        controller = ProtocolApiController(_BrokenOrchestrator())
        response = asyncio.run(controller.health_check())
        assert response.success is False
        assert response.data is None
        assert response.error == "metrics backend unavailable"

    def test_execute_echoes_unregistered_operation(self):
        response = asyncio.run(self.controller.execute_operation(
            ApiRequest(operation="lookup", params={"id": 7})
        ))
        assert response.success is True
        assert response.data.data == {"operation": "lookup", "params": {"id": 7}}
        assert self.orchestrator.get_metrics().total_operations == 1

    def test_execute_registered_operation(self):
        async def add(params):
            return params["a"] + params["b"]

        self.controller.register_operation("add", add)
        response = asyncio.run(self.controller.execute_operation(
            ApiRequest(operation="add", params={"a": 2, "b": 3})
        ))
        assert response.data.data == 5

    def test_unhealed_failure_becomes_error_envelope(self):
        def explode(params):
            raise ValueError("bad input")

        self.controller.register_operation("explode", explode)
        response = asyncio.run(self.controller.execute_operation(
            ApiRequest(operation="explode")
        ))
        assert response.success is False
        assert response.error == "bad input"

    def test_recommendations_with_limit(self):
        asyncio.run(self.orchestrator.execute(lambda: 1, "op"))

        everything = asyncio.run(self.controller.get_recommendations())
        top = asyncio.run(self.controller.get_recommendations(limit=1))

        assert len(everything.data) == 2
        assert [r.estimated_impact for r in top.data] == [75]

    def test_get_config(self):
        response = asyncio.run(self.controller.get_config())
        assert response.data.max_recommendations == 50


class TestHealthEndpoints:
    def test_health(self, client):
        client.post("/operations", json={"operation": "warmup"})
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["healthy"] is True

    def test_metrics(self, client):
        client.post("/operations", json={"operation": "one"})
        client.post("/operations", json={"operation": "two"})

        body = client.get("/metrics").json()
        assert body["data"]["total_operations"] == 2
        assert body["data"]["successful_operations"] == 2


class TestLedgerEndpoints:
    def test_execute_then_list(self, client):
        response = client.post("/operations", json={
            "operation": "sync_accounts",
            "params": {"batch": 10},
        })
        assert response.status_code == 200
        result = response.json()["data"]
        assert result["status"] == "enhanced"
        assert result["data"] == {"operation": "sync_accounts", "params": {"batch": 10}}

        enhancements = client.get("/enhancements").json()["data"]
        assert len(enhancements) == 2
        assert enhancements[0]["impact"] == 110

        recommendations = client.get("/recommendations").json()["data"]
        assert len(recommendations) == 2

        top = client.get("/recommendations", params={"limit": 1}).json()["data"]
        assert top[0]["title"] == "Optimize Performance"

    def test_implement_recommendation(self, client, orchestrator):
        client.post("/operations", json={"operation": "op"})
        rec_id = orchestrator.get_recommendations()[0].id

        response = client.post(f"/recommendations/{rec_id}/implement")
        assert response.status_code == 200
        assert client.get("/metrics").json()["data"]["implemented_recommendations"] == 1

    def test_implement_unknown_recommendation(self, client):
        response = client.post("/recommendations/rec_missing/implement")
        assert response.status_code == 404


class TestConfigEndpoints:
    def test_get_config(self, client):
        body = client.get("/config").json()
        assert body["data"]["monitoring_interval"] == 60000
        assert body["data"]["min_enhancement_level"] == 110

    def test_update_config(self, client):
        response = client.put("/config", json={
            "enable_continuous_improvement": False,
            "max_recommendations": 10,
        })
        assert response.status_code == 200
        assert response.json()["max_recommendations"] == 10

        result = client.post("/operations", json={"operation": "op"}).json()["data"]
        assert result["enhancements"] == []
        assert result["status"] == "success"

    def test_invalid_config_rejected(self, client):
        response = client.put("/config", json={"monitoring_interval": 10})
        assert response.status_code == 422


class TestLearningAndHealingEndpoints:
    def test_patterns_and_insights(self, client):
        for _ in range(5):
            client.post("/operations", json={"operation": "nightly_report"})

        patterns = client.get("/learning/patterns").json()
        assert patterns[0]["pattern"] == "nightly_report"
        assert patterns[0]["frequency"] == 5

        insights = client.post("/learning/insights").json()
        assert len(insights) == 1
        assert insights[0]["category"] == "high-performer"

    def test_healing_history(self, client, orchestrator):
        asyncio.run(orchestrator.healing.heal(Exception("Unknown failure")))

        body = client.get("/healing/history").json()
        assert body["success_rate"] == 0.0
        assert body["attempts"][0]["strategy_used"] == "none"
