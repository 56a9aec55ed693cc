"""
Healing Engine — strategy-matching automatic recovery.

Strategies are a plugin table: each carries a matcher over the error's
text and a recovery action. The table is kept sorted by priority
(CRITICAL first, registration order among equals), and heal() runs the
first strategy whose matcher accepts the error. At most one recovery
action runs per error.

Behavioral Contract:
- heal() never raises for a failing action: exceptions and timeouts inside
  an action count as an unsuccessful attempt. A matcher that raises is
  skipped as a non-match.
- No match is an unsuccessful attempt with strategy_used="none".
- Every heal() call records exactly one HealingAttempt; the history keeps
  the most recent ``history_limit`` attempts (FIFO eviction).
"""

import asyncio
import gc
import inspect
import time
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional
from uuid import uuid4

from protocol_kernel.models.enhancement import Priority
from protocol_kernel.models.healing import (
    HealingAttempt,
    HealingConfig,
    HealingStrategy,
    pattern_matcher,
)
from protocol_kernel.observability.logger import ProtocolLogger

NO_STRATEGY = "none"


def describe_error(error: BaseException) -> str:
    """Textual description used for matching. Falls back to the class name."""
    return str(error) or type(error).__name__


class HealingEngine:
    """Runs the first matching recovery strategy for a failed operation."""

    def __init__(
        self,
        config: Optional[HealingConfig] = None,
        logger: Optional[ProtocolLogger] = None,
    ):
        self.config = config or HealingConfig()
        self._logger = logger or ProtocolLogger("protocol_kernel.healing")
        self._strategies: List[HealingStrategy] = []
        self._history: Deque[HealingAttempt] = deque(maxlen=self.config.history_limit)
        self._in_flight = 0
        self._register_default_strategies()

    @property
    def status(self) -> str:
        return "healing" if self._in_flight else "idle"

    def _register_default_strategies(self) -> None:
        """Register the built-in network, resource and rate-limit strategies."""
        self.register_strategy(HealingStrategy(
            id="network-retry",
            name="Network Retry",
            description="Retry operations that failed due to network issues",
            priority=Priority.HIGH,
            error_matcher=pattern_matcher(
                r"network|timeout|timed out|ECONNREFUSED|ETIMEDOUT|connection refused"
            ),
            healing_action=self._network_retry,
        ))
        self.register_strategy(HealingStrategy(
            id="resource-cleanup",
            name="Resource Cleanup",
            description="Clean up resources and retry",
            priority=Priority.HIGH,
            error_matcher=pattern_matcher(
                r"memory|ENOMEM|EMFILE|too many open files|too many files"
            ),
            healing_action=self._resource_cleanup,
        ))
        self.register_strategy(HealingStrategy(
            id="rate-limit-backoff",
            name="Rate Limit Backoff",
            description="Wait and retry when rate limited",
            priority=Priority.MEDIUM,
            error_matcher=pattern_matcher(r"rate limit|429|too many requests"),
            healing_action=self._rate_limit_backoff,
        ))

    def register_strategy(self, strategy: HealingStrategy) -> None:
        """Add a strategy and re-sort the table by priority."""
        self._strategies.append(strategy)
        self._strategies.sort(key=lambda s: s.priority.rank)

    def find_strategy(self, description: str) -> Optional[HealingStrategy]:
        """First strategy, in priority order, whose matcher accepts ``description``."""
        for strategy in self._strategies:
            try:
                matched = strategy.matches(description)
            except Exception as e:
                self._log(
                    "error",
                    "Healing strategy matcher failed",
                    {"strategy": strategy.name, "error": describe_error(e)},
                )
                continue
            if matched:
                return strategy
        return None

    async def heal(
        self,
        error: BaseException,
        timeout: Optional[float] = None,
    ) -> bool:
        """
        Attempt to recover from ``error``.

        ``timeout`` bounds the recovery action in seconds, falling back to
        config.action_timeout; an action that overruns it is cancelled and
        counted as a failed attempt.
        """
        if timeout is None:
            timeout = self.config.action_timeout
        start = time.monotonic()
        description = describe_error(error)

        strategy = self.find_strategy(description)
        if strategy is None:
            self._record_attempt(description, NO_STRATEGY, False, start)
            self._log("info", "No healing strategy matched", {"error": description})
            return False

        self._in_flight += 1
        try:
            success = await self._run_action(strategy, timeout)
        except Exception as e:
            self._log(
                "error",
                "Healing action failed",
                {"strategy": strategy.name, "error": describe_error(e)},
            )
            success = False
        finally:
            self._in_flight -= 1

        attempt = self._record_attempt(description, strategy.name, success, start)
        self._log(
            "info",
            "Healing attempt recorded",
            {
                "strategy": strategy.name,
                "success": success,
                "recovery_duration_ms": attempt.recovery_duration_ms,
            },
        )
        return success

    async def _run_action(
        self, strategy: HealingStrategy, timeout: Optional[float]
    ) -> bool:
        outcome = strategy.healing_action()
        if inspect.isawaitable(outcome):
            outcome = await asyncio.wait_for(outcome, timeout=timeout)
        return bool(outcome)

    def _record_attempt(
        self,
        description: str,
        strategy_used: str,
        success: bool,
        start: float,
    ) -> HealingAttempt:
        attempt = HealingAttempt(
            id=f"heal_{uuid4().hex[:12]}",
            timestamp=datetime.now(timezone.utc),
            error_description=description,
            strategy_used=strategy_used,
            success=success,
            recovery_duration_ms=round((time.monotonic() - start) * 1000, 3),
        )
        self._history.append(attempt)
        return attempt

    def _log(self, level: str, message: str, context: dict) -> None:
        try:
            getattr(self._logger, level)(message, context)
        except Exception:
            # Logging is fire-and-forget, whatever logger was supplied.
            return

    def get_history(self) -> List[HealingAttempt]:
        """Recorded attempts, oldest first."""
        return list(self._history)

    def get_strategies(self) -> List[HealingStrategy]:
        """Registered strategies, in the order heal() consults them."""
        return list(self._strategies)

    def success_rate(self) -> float:
        """Percentage of recorded attempts that succeeded. 0.0 when empty."""
        if not self._history:
            return 0.0
        successful = sum(1 for a in self._history if a.success)
        return successful / len(self._history) * 100

    # --- Built-in Recovery Actions ---

    async def _network_retry(self) -> bool:
        await asyncio.sleep(self.config.network_retry_delay)
        return True

    async def _resource_cleanup(self) -> bool:
        if self.config.collect_garbage:
            gc.collect()
        await asyncio.sleep(self.config.resource_cleanup_delay)
        return True

    async def _rate_limit_backoff(self) -> bool:
        await asyncio.sleep(self.config.rate_limit_delay)
        return True
