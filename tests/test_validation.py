"""Tests for boundary schema validation."""

import asyncio
from datetime import datetime, timezone

from protocol_kernel.orchestrator.protocol import ProtocolOrchestrator
from protocol_kernel.validation.schema import (
    validate_enhancement,
    validate_health_check,
    validate_operation_result,
    validate_protocol_config,
    validate_recommendation,
)


def _enhancement(**overrides) -> dict:
    data = {
        "id": "enh_1",
        "description": "Test enhancement",
        "impact": 110,
        "priority": "high",
        "timestamp": datetime.now(timezone.utc),
    }
    data.update(overrides)
    return data


def _recommendation(**overrides) -> dict:
    data = {
        "id": "rec_1",
        "title": "Test",
        "description": "Test description",
        "priority": "medium",
        "estimated_impact": 75,
        "category": "performance",
        "actionable": True,
        "timestamp": datetime.now(timezone.utc),
    }
    data.update(overrides)
    return data


class TestEnhancementValidation:
    def test_valid(self):
        assert validate_enhancement(_enhancement()) is True

    def test_unknown_impact_level(self):
        assert validate_enhancement(_enhancement(impact=105)) is False

    def test_empty_description(self):
        assert validate_enhancement(_enhancement(description="")) is False

    def test_description_too_long(self):
        assert validate_enhancement(_enhancement(description="x" * 501)) is False

    def test_not_a_mapping(self):
        assert validate_enhancement("enhancement") is False
        assert validate_enhancement(None) is False


class TestRecommendationValidation:
    def test_valid(self):
        assert validate_recommendation(_recommendation()) is True

    def test_impact_out_of_range(self):
        assert validate_recommendation(_recommendation(estimated_impact=101)) is False
        assert validate_recommendation(_recommendation(estimated_impact=-1)) is False

    def test_unknown_priority(self):
        assert validate_recommendation(_recommendation(priority="urgent")) is False

    def test_category_too_long(self):
        assert validate_recommendation(_recommendation(category="c" * 51)) is False


class TestConfigValidation:
    def test_valid(self):
        assert validate_protocol_config({
            "min_enhancement_level": 110,
            "enable_self_healing": True,
            "enable_self_learning": True,
            "enable_continuous_improvement": True,
            "monitoring_interval": 60000,
            "max_recommendations": 50,
        }) is True

    def test_monitoring_interval_bounds(self):
        assert validate_protocol_config({"monitoring_interval": 999}) is False
        assert validate_protocol_config({"monitoring_interval": 3_600_001}) is False
        assert validate_protocol_config({"monitoring_interval": 1000}) is True

    def test_max_recommendations_bounds(self):
        assert validate_protocol_config({"max_recommendations": 0}) is False
        assert validate_protocol_config({"max_recommendations": 101}) is False


class TestPipelineOutputValidation:
    def test_orchestrator_output_conforms(self):
        orchestrator = ProtocolOrchestrator()
        result = asyncio.run(orchestrator.execute(lambda: {"ok": True}, "validated"))

        assert validate_operation_result(result) is True
        assert validate_operation_result(result.model_dump(mode="json")) is True
        assert validate_enhancement(result.enhancements[0]) is True
        assert validate_recommendation(result.recommendations[0]) is True
        assert validate_health_check(orchestrator.get_health_check()) is True

    def test_health_check_rates_bounded(self):
        health = {
            "healthy": True,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc),
            "metrics": {
                "uptime_ms": 10,
                "enhancement_rate": 120,
                "success_rate": 100,
                "average_execution_time_ms": 1,
            },
        }
        assert validate_health_check(health) is False
