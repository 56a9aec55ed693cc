"""Enhancement and Recommendation records — the quality ledger entries."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EnhancementLevel(int, Enum):
    """Impact tag that doubles as a numeric score for averaging."""
    BASELINE = 100
    ENHANCED = 110
    EXCEPTIONAL = 120
    TRANSFORMATIVE = 150


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Scheduling rank. Lower runs first, CRITICAL is 0."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


class Enhancement(BaseModel):
    """A record asserting that an operation's outcome was improved."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str = Field(min_length=1, max_length=500)
    impact: EnhancementLevel
    priority: Priority
    timestamp: datetime
    metadata: Optional[dict] = None


class Recommendation(BaseModel):
    """A suggested follow-up action with an estimated impact."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    priority: Priority
    estimated_impact: float = Field(ge=0, le=100)   # 0 = negligible, 100 = maximal
    category: str = Field(min_length=1, max_length=50)  # e.g., "performance"
    actionable: bool = True
    timestamp: datetime
