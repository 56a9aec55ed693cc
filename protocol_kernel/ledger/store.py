"""
Ledger Store — append-only registries of Enhancements and Recommendations.

Behavioral Contract:
- Append-only. Stored records are frozen and never modified or removed,
  except by clear(), which exists for resets and test isolation.
- Every read hands out copies; callers can never mutate stored state.
- Queries preserve insertion order unless they explicitly sort.
- Only the orchestrator (and its healing path) records entries.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Set
from uuid import uuid4

from protocol_kernel.models.enhancement import (
    Enhancement,
    EnhancementLevel,
    Priority,
    Recommendation,
)


class EnhancementLedger:
    """Append-only registry of Enhancement records."""

    def __init__(self):
        self._enhancements: List[Enhancement] = []

    def record(
        self,
        description: str,
        impact: EnhancementLevel,
        priority: Priority,
        metadata: Optional[dict] = None,
    ) -> Enhancement:
        """Create an enhancement with a fresh id and timestamp, and append it."""
        enhancement = Enhancement(
            id=f"enh_{uuid4().hex[:12]}",
            description=description,
            impact=impact,
            priority=priority,
            timestamp=datetime.now(timezone.utc),
            metadata=metadata,
        )
        self._enhancements.append(enhancement)
        return enhancement.model_copy(deep=True)

    def all(self) -> List[Enhancement]:
        return self.query(lambda e: True)

    def query(self, predicate: Callable[[Enhancement], bool]) -> List[Enhancement]:
        """Filtered copies, in insertion order."""
        return [
            e.model_copy(deep=True) for e in self._enhancements if predicate(e)
        ]

    def query_by_priority(self, priority: Priority) -> List[Enhancement]:
        return self.query(lambda e: e.priority == priority)

    def query_by_min_impact(self, min_impact: EnhancementLevel) -> List[Enhancement]:
        """Enhancements whose impact is at least ``min_impact``."""
        return self.query(lambda e: e.impact >= min_impact)

    def average_enhancement_level(self) -> float:
        """Mean impact score. An empty ledger reports BASELINE."""
        if not self._enhancements:
            return float(EnhancementLevel.BASELINE)
        total = sum(int(e.impact) for e in self._enhancements)
        return total / len(self._enhancements)

    def count(self) -> int:
        return len(self._enhancements)

    def clear(self) -> None:
        self._enhancements = []


class RecommendationLedger:
    """Append-only registry of Recommendation records."""

    def __init__(self):
        self._recommendations: List[Recommendation] = []
        self._implemented: Set[str] = set()

    def record(
        self,
        title: str,
        description: str,
        priority: Priority,
        estimated_impact: float,
        category: str,
        actionable: bool = True,
    ) -> Recommendation:
        """Create a recommendation with a fresh id and timestamp, and append it."""
        recommendation = Recommendation(
            id=f"rec_{uuid4().hex[:12]}",
            title=title,
            description=description,
            priority=priority,
            estimated_impact=estimated_impact,
            category=category,
            actionable=actionable,
            timestamp=datetime.now(timezone.utc),
        )
        self._recommendations.append(recommendation)
        return recommendation.model_copy(deep=True)

    def all(self) -> List[Recommendation]:
        return self.query(lambda r: True)

    def query(
        self, predicate: Callable[[Recommendation], bool]
    ) -> List[Recommendation]:
        """Filtered copies, in insertion order."""
        return [
            r.model_copy(deep=True) for r in self._recommendations if predicate(r)
        ]

    def query_by_priority(self, priority: Priority) -> List[Recommendation]:
        return self.query(lambda r: r.priority == priority)

    def query_actionable(self) -> List[Recommendation]:
        return self.query(lambda r: r.actionable)

    def top_recommendations(self, limit: int = 10) -> List[Recommendation]:
        """
        The ``limit`` recommendations with the greatest estimated impact,
        highest first. Equal impacts keep their insertion order.
        """
        ranked = sorted(
            self._recommendations,
            key=lambda r: r.estimated_impact,
            reverse=True,
        )
        return [r.model_copy(deep=True) for r in ranked[:max(limit, 0)]]

    def mark_implemented(self, recommendation_id: str) -> bool:
        """Flag a stored recommendation as implemented. Unknown ids return False."""
        if not any(r.id == recommendation_id for r in self._recommendations):
            return False
        self._implemented.add(recommendation_id)
        return True

    def implemented_count(self) -> int:
        return len(self._implemented)

    def count(self) -> int:
        return len(self._recommendations)

    def clear(self) -> None:
        self._recommendations = []
        self._implemented = set()


class LedgerStore:
    """The two ledgers owned by one orchestrator instance."""

    def __init__(self):
        self.enhancements = EnhancementLedger()
        self.recommendations = RecommendationLedger()

    def average_enhancement_level(self) -> float:
        return self.enhancements.average_enhancement_level()

    def top_recommendations(self, limit: int = 10) -> List[Recommendation]:
        return self.recommendations.top_recommendations(limit)

    def clear(self) -> None:
        """Empty both ledgers."""
        self.enhancements.clear()
        self.recommendations.clear()
