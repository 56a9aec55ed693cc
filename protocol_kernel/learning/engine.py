"""
Pattern Learner — frequency-based self-learning.

Tracks named, repeatable events and how often they succeed. The statistic
is an exact running average: after n observations success_rate equals
successes / n, without keeping the history itself.

Insights are derived on demand, never automatically:
- frequency >= 5 and success_rate >= 0.9  -> "high-performer"
- frequency >= 5 and success_rate <  0.5  -> "needs-improvement"
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from protocol_kernel.models.learning import LearningInsight, LearningPattern

MIN_INSIGHT_FREQUENCY = 5
HIGH_PERFORMER_RATE = 0.9
NEEDS_IMPROVEMENT_RATE = 0.5


class PatternLearner:
    """Running statistics per pattern name plus the insight log."""

    def __init__(self):
        self._patterns: Dict[str, LearningPattern] = {}
        self._insights: List[LearningInsight] = []

    def record_pattern(
        self,
        name: str,
        success: bool,
        metadata: Optional[dict] = None,
    ) -> LearningPattern:
        """Record one observation of ``name`` and return its updated pattern."""
        now = datetime.now(timezone.utc)
        existing = self._patterns.get(name)

        if existing:
            frequency = existing.frequency + 1
            successes = existing.success_rate * existing.frequency + (1 if success else 0)
            existing.frequency = frequency
            existing.success_rate = successes / frequency
            existing.last_seen = now
            if metadata:
                existing.metadata = {**(existing.metadata or {}), **metadata}
            return existing

        pattern = LearningPattern(
            id=f"pat_{uuid4().hex[:12]}",
            pattern=name,
            frequency=1,
            success_rate=1.0 if success else 0.0,
            last_seen=now,
            metadata=dict(metadata) if metadata else None,
        )
        self._patterns[name] = pattern
        return pattern

    def generate_insights(self) -> List[LearningInsight]:
        """
        Derive insights from every pattern seen often enough.

        Each call appends its insights to the log, so calling it again on
        unchanged patterns logs the same insights again.
        """
        new_insights = []
        for pattern in self._patterns.values():
            if pattern.frequency < MIN_INSIGHT_FREQUENCY:
                continue

            if pattern.success_rate >= HIGH_PERFORMER_RATE:
                new_insights.append(self._make_insight(
                    pattern,
                    text=(
                        f'Pattern "{pattern.pattern}" has high success rate '
                        f"({pattern.success_rate:.1%})"
                    ),
                    confidence=pattern.success_rate,
                    category="high-performer",
                ))
            elif pattern.success_rate < NEEDS_IMPROVEMENT_RATE:
                new_insights.append(self._make_insight(
                    pattern,
                    text=(
                        f'Pattern "{pattern.pattern}" has low success rate '
                        f"({pattern.success_rate:.1%})"
                    ),
                    confidence=1.0 - pattern.success_rate,
                    category="needs-improvement",
                ))

        self._insights.extend(new_insights)
        return list(new_insights)

    def _make_insight(
        self,
        pattern: LearningPattern,
        text: str,
        confidence: float,
        category: str,
    ) -> LearningInsight:
        return LearningInsight(
            id=f"ins_{uuid4().hex[:12]}",
            pattern=pattern.pattern,
            text=text,
            confidence=confidence,
            category=category,
            timestamp=datetime.now(timezone.utc),
        )

    def get_pattern(self, name: str) -> Optional[LearningPattern]:
        return self._patterns.get(name)

    def get_patterns(self) -> List[LearningPattern]:
        """All learned patterns, in first-seen order."""
        return list(self._patterns.values())

    def get_successful_patterns(self, min_rate: float = 0.8) -> List[LearningPattern]:
        """Patterns at or above ``min_rate``. No frequency floor."""
        return [p for p in self._patterns.values() if p.success_rate >= min_rate]

    def get_insights(self) -> List[LearningInsight]:
        return list(self._insights)

    def clear(self) -> None:
        self._patterns = {}
        self._insights = []
