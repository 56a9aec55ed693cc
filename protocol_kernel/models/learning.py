"""Learning Model — observed patterns and the insights derived from them."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class LearningPattern(BaseModel):
    """Running statistics for a named, repeatable event. Mutated in place."""

    id: str
    pattern: str                            # Unique key, e.g. an operation name
    frequency: int = Field(ge=1)
    success_rate: float = Field(ge=0.0, le=1.0)
    last_seen: datetime
    metadata: Optional[dict] = None


class LearningInsight(BaseModel):
    """A pattern that crossed a frequency / success-rate threshold."""

    id: str
    pattern: str
    text: str
    confidence: float = Field(ge=0.0, le=1.0)
    category: Literal["high-performer", "needs-improvement"]
    timestamp: datetime
