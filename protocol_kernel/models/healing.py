"""Healing Model — recovery strategies and the attempts made with them."""

import re
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from pydantic import BaseModel, Field

from protocol_kernel.models.enhancement import Priority


ErrorMatcher = Callable[[str], bool]
HealingAction = Callable[[], Union[bool, Awaitable[bool]]]


def pattern_matcher(pattern: str) -> ErrorMatcher:
    """Build a case-insensitive regex predicate over an error description."""
    compiled = re.compile(pattern, re.IGNORECASE)

    def _matches(description: str) -> bool:
        return compiled.search(description) is not None

    return _matches


class HealingStrategy(BaseModel):
    """A (match-error, recovery-action) pair registered with the Healing Engine."""

    id: str
    name: str
    description: str
    priority: Priority
    error_matcher: ErrorMatcher             # Accepts the error's text
    healing_action: HealingAction           # Returns (or resolves to) success

    def matches(self, description: str) -> bool:
        return bool(self.error_matcher(description))


class HealingAttempt(BaseModel):
    """One call to HealingEngine.heal. Append-only."""

    id: str
    timestamp: datetime
    error_description: str
    strategy_used: str                      # Strategy name, "none" if unmatched
    success: bool
    recovery_duration_ms: float = Field(ge=0)


class HealingConfig(BaseModel):
    """Tunables for the built-in strategies and the attempt history."""

    network_retry_delay: float = Field(ge=0, default=1.0)      # seconds
    resource_cleanup_delay: float = Field(ge=0, default=0.5)
    rate_limit_delay: float = Field(ge=0, default=5.0)
    action_timeout: Optional[float] = Field(gt=0, default=None)     # None = unbounded
    collect_garbage: bool = True
    history_limit: int = Field(ge=1, default=100)
