"""Tests for core data models."""

from datetime import datetime, timezone

import pytest

from protocol_kernel.models import (
    EnhancementLevel,
    HealingAttempt,
    HealingConfig,
    HealingStrategy,
    LearningInsight,
    LearningPattern,
    Priority,
    ProtocolConfig,
    Recommendation,
    pattern_matcher,
)


class TestEnums:
    def test_enhancement_levels(self):
        assert EnhancementLevel.BASELINE == 100
        assert EnhancementLevel.ENHANCED == 110
        assert EnhancementLevel.EXCEPTIONAL == 120
        assert EnhancementLevel.TRANSFORMATIVE == 150
        assert EnhancementLevel.EXCEPTIONAL > EnhancementLevel.ENHANCED

    def test_priority_rank(self):
        ordered = sorted(Priority, key=lambda p: p.rank)
        assert ordered == [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]


class TestProtocolConfig:
    def test_defaults(self):
        config = ProtocolConfig()
        assert config.min_enhancement_level == EnhancementLevel.ENHANCED
        assert config.monitoring_interval == 60000
        assert config.max_recommendations == 50
        assert config.operation_timeout_seconds is None

    def test_monitoring_interval_bounds(self):
        with pytest.raises(Exception):
            ProtocolConfig(monitoring_interval=500)
        with pytest.raises(Exception):
            ProtocolConfig(monitoring_interval=3_600_001)

    def test_max_recommendations_bounds(self):
        with pytest.raises(Exception):
            ProtocolConfig(max_recommendations=0)
        with pytest.raises(Exception):
            ProtocolConfig(max_recommendations=101)

    def test_timeout_must_be_positive(self):
        with pytest.raises(Exception):
            ProtocolConfig(operation_timeout_seconds=0)

    def test_healing_action_timeout_must_be_positive(self):
        assert HealingConfig().action_timeout is None
        with pytest.raises(Exception):
            HealingConfig(action_timeout=0)


class TestRecords:
    def test_recommendation_is_frozen(self):
        rec = Recommendation(
            id="rec_1",
            title="Test",
            description="Test",
            priority=Priority.LOW,
            estimated_impact=10,
            category="test",
            timestamp=datetime.now(timezone.utc),
        )
        with pytest.raises(Exception):
            rec.estimated_impact = 99

    def test_pattern_frequency_floor(self):
        with pytest.raises(Exception):
            LearningPattern(
                id="pat_1",
                pattern="p",
                frequency=0,
                success_rate=0.5,
                last_seen=datetime.now(timezone.utc),
            )

    def test_insight_category_is_closed(self):
        with pytest.raises(Exception):
            LearningInsight(
                id="ins_1",
                pattern="p",
                text="t",
                confidence=0.5,
                category="interesting",
                timestamp=datetime.now(timezone.utc),
            )

    def test_healing_attempt(self):
        attempt = HealingAttempt(
            id="heal_1",
            timestamp=datetime.now(timezone.utc),
            error_description="Network down",
            strategy_used="none",
            success=False,
            recovery_duration_ms=0.0,
        )
        assert attempt.strategy_used == "none"


class TestHealingStrategy:
    def test_pattern_matcher_is_case_insensitive(self):
        matcher = pattern_matcher(r"rate limit|429")
        assert matcher("RATE LIMIT exceeded") is True
        assert matcher("HTTP 429") is True
        assert matcher("not found") is False

    def test_strategy_matches(self):
        strategy = HealingStrategy(
            id="db",
            name="Database Failover",
            description="Fail over to the replica",
            priority=Priority.CRITICAL,
            error_matcher=lambda text: "deadlock" in text,
            healing_action=lambda: True,
        )
        assert strategy.matches("deadlock detected") is True
        assert strategy.matches("syntax error") is False
