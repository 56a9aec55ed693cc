"""
Protocol Orchestrator — the execution pipeline.

Wraps a caller-supplied operation and sequences:
  EXECUTE → (ENHANCE → RECOMMEND) | (HEAL → RECOVERED | RAISE)

Behavioral Contract:
- Every call to execute() counts exactly one operation, and afterwards
  total_operations == successful_operations + failed_operations.
- Enhancements and recommendations are produced only while continuous
  improvement is enabled, and only through the orchestrator's ledgers.
- A failure is recovered only through the Healing Engine. An unhealed
  failure re-raises the original exception; there is no retry loop here.
- The operation is the only suspension point of the pipeline. All counter
  and ledger mutations run between await points, so concurrent executions
  on one event loop never interleave them.
"""

import asyncio
import inspect
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Union

from protocol_kernel.healing.engine import HealingEngine, describe_error
from protocol_kernel.learning.engine import PatternLearner
from protocol_kernel.ledger.store import LedgerStore
from protocol_kernel.models.config import ProtocolConfig
from protocol_kernel.models.enhancement import (
    Enhancement,
    EnhancementLevel,
    Priority,
    Recommendation,
)
from protocol_kernel.models.learning import LearningInsight
from protocol_kernel.models.operation import (
    HealthCheck,
    HealthMetrics,
    OperationMetadata,
    OperationResult,
    OperationStatus,
    SystemMetrics,
)
from protocol_kernel.observability.logger import ProtocolLogger

Operation = Callable[[], Union[Any, Awaitable[Any]]]

HEALTHY_SUCCESS_RATE = 80.0


class OperationTimeoutError(TimeoutError):
    """Raised when an operation overruns its timeout."""
    pass


class ProtocolOrchestrator:
    """
    Owns the configuration, counters and collaborators of one pipeline.
    Nothing is shared between instances.
    """

    def __init__(
        self,
        config: Optional[ProtocolConfig] = None,
        ledger: Optional[LedgerStore] = None,
        healing_engine: Optional[HealingEngine] = None,
        pattern_learner: Optional[PatternLearner] = None,
        logger: Optional[ProtocolLogger] = None,
    ):
        self.config = config or ProtocolConfig()
        self.ledger = ledger or LedgerStore()
        self.healing = healing_engine or HealingEngine()
        self.learning = pattern_learner or PatternLearner()
        self._logger = logger or ProtocolLogger("protocol_kernel.orchestrator")

        self._started_at = time.monotonic()
        self._metrics = SystemMetrics(last_update=datetime.now(timezone.utc))
        self._total_execution_ms = 0.0
        self._timed_operations = 0
        self._running = False

        self._log(
            "info",
            "Protocol orchestrator initialized",
            {"config": self.config.model_dump(mode="json")},
        )

    @property
    def status(self) -> str:
        """Whether the monitoring loop is running."""
        return "monitoring" if self._running else "stopped"

    # --- Execution Pipeline ---

    async def execute(
        self,
        operation: Operation,
        name: str = "operation",
        timeout: Optional[float] = None,
    ) -> OperationResult:
        """
        Run ``operation`` through the pipeline.

        ``operation`` takes no arguments and returns a value or an awaitable.
        ``timeout`` (seconds, falling back to config.operation_timeout_seconds)
        bounds an awaitable operation; expiry raises OperationTimeoutError,
        which is handled like any other failure. The healing action is bounded
        separately by the Healing Engine's own config.
        """
        if timeout is None:
            timeout = self.config.operation_timeout_seconds

        start = time.monotonic()
        self._metrics.total_operations += 1
        self._log("info", "Executing operation", {"operation": name})

        try:
            try:
                data = await self._invoke(operation, name, timeout)
            except Exception as e:
                healed = await self._handle_failure(e, name, start)
                if healed is None:
                    raise
                return healed
            return self._handle_success(data, name, start)
        finally:
            self._total_execution_ms += self._elapsed_ms(start)
            self._timed_operations += 1

    async def _invoke(
        self, operation: Operation, name: str, timeout: Optional[float]
    ) -> Any:
        outcome = operation()
        if not inspect.isawaitable(outcome):
            return outcome
        if timeout is None:
            return await outcome
        task = asyncio.ensure_future(outcome)
        try:
            return await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError as e:
            if not task.cancelled():
                # The operation raised its own TimeoutError.
                raise
            raise OperationTimeoutError(
                f"Operation '{name}' timed out after {timeout}s"
            ) from e

    def _handle_success(self, data: Any, name: str, start: float) -> OperationResult:
        enhancements = self._apply_enhancements(name, data)
        recommendations = self._generate_recommendations(name)

        self._metrics.successful_operations += 1
        if enhancements:
            self._metrics.enhanced_operations += 1
        self._learn(name, success=True)
        self._update_metrics()

        execution_time_ms = self._elapsed_ms(start)
        self._log(
            "info",
            "Operation completed",
            {
                "operation": name,
                "execution_time_ms": execution_time_ms,
                "enhancements": len(enhancements),
                "recommendations": len(recommendations),
            },
        )

        return self._build_result(
            data=data,
            enhancements=enhancements,
            recommendations=recommendations,
            execution_time_ms=execution_time_ms,
        )

    async def _handle_failure(
        self,
        error: Exception,
        name: str,
        start: float,
    ) -> Optional[OperationResult]:
        """Count the failure and try to heal it. None means re-raise."""
        self._metrics.failed_operations += 1
        self._learn(name, success=False)
        self._update_metrics()

        self._log(
            "error",
            "Operation failed",
            {
                "operation": name,
                "error": describe_error(error),
                "execution_time_ms": self._elapsed_ms(start),
            },
        )

        if not self.config.enable_self_healing:
            return None

        self._log("info", "Attempting self-healing", {"operation": name})
        healed = await self.healing.heal(error)
        if not healed:
            self._log("error", "Self-healing failed", {"operation": name})
            return None

        self._metrics.healed_operations += 1
        recommendations = []
        if self.config.enable_continuous_improvement:
            recommendations.append(self.ledger.recommendations.record(
                title="Self-Healing Action",
                description=f"Implemented recovery procedure for {name}",
                priority=Priority.HIGH,
                estimated_impact=90,
                category="self-healing",
            ))
        self._update_metrics()
        self._log("info", "Self-healing completed successfully", {"operation": name})

        return self._build_result(
            data={"healed": True, "original_error": describe_error(error)},
            enhancements=[],
            recommendations=recommendations,
            execution_time_ms=self._elapsed_ms(start),
        )

    def _apply_enhancements(self, name: str, data: Any) -> List[Enhancement]:
        if not self.config.enable_continuous_improvement:
            return []

        enhancements = [
            self.ledger.enhancements.record(
                description=f"Enhanced {name} with protocol pipeline",
                impact=EnhancementLevel.ENHANCED,
                priority=Priority.MEDIUM,
                metadata={
                    "operation_name": name,
                    "result_type": type(data).__name__,
                },
            )
        ]

        if data is not None:
            enhancements.append(self.ledger.enhancements.record(
                description="Result validation and optimization applied",
                impact=EnhancementLevel.EXCEPTIONAL,
                priority=Priority.LOW,
                metadata={"validated": True},
            ))

        return enhancements

    def _generate_recommendations(self, name: str) -> List[Recommendation]:
        if not self.config.enable_continuous_improvement:
            return []

        recommendations = [
            self.ledger.recommendations.record(
                title="Optimize Performance",
                description=f"Consider caching results for {name} to improve performance",
                priority=Priority.MEDIUM,
                estimated_impact=75,
                category="performance",
            ),
            self.ledger.recommendations.record(
                title="Enhanced Monitoring",
                description=f"Add detailed metrics tracking for {name}",
                priority=Priority.LOW,
                estimated_impact=50,
                category="monitoring",
            ),
        ]
        # The ledger keeps both; only the returned list is capped.
        return recommendations[:self.config.max_recommendations]

    def _build_result(
        self,
        data: Any,
        enhancements: List[Enhancement],
        recommendations: List[Recommendation],
        execution_time_ms: float,
    ) -> OperationResult:
        return OperationResult(
            success=True,
            status=OperationStatus.ENHANCED if enhancements else OperationStatus.SUCCESS,
            data=data,
            enhancements=enhancements,
            recommendations=recommendations,
            metadata=OperationMetadata(
                execution_time_ms=execution_time_ms,
                timestamp=datetime.now(timezone.utc),
                version=self.config.version,
            ),
        )

    def _log(self, level: str, message: str, context: Optional[dict] = None) -> None:
        try:
            getattr(self._logger, level)(message, context)
        except Exception:
            # Logging is fire-and-forget, whatever logger was supplied.
            return

    def _learn(self, name: str, success: bool) -> None:
        if self.config.enable_self_learning:
            self.learning.record_pattern(name, success)

    # --- Metrics & Health ---

    def _elapsed_ms(self, start: float) -> float:
        return round((time.monotonic() - start) * 1000, 3)

    def _update_metrics(self) -> None:
        self._metrics.uptime_ms = (time.monotonic() - self._started_at) * 1000
        self._metrics.last_update = datetime.now(timezone.utc)
        self._metrics.average_enhancement_level = self.ledger.average_enhancement_level()
        self._metrics.total_recommendations = self.ledger.recommendations.count()
        self._metrics.implemented_recommendations = (
            self.ledger.recommendations.implemented_count()
        )

    def get_metrics(self) -> SystemMetrics:
        """A fresh snapshot of the aggregate metrics."""
        self._update_metrics()
        return self._metrics.model_copy()

    def get_health_check(self) -> HealthCheck:
        """
        Healthy iff at least 80% of operations succeeded and the
        orchestrator has been up for a measurable time.
        """
        self._update_metrics()
        metrics = self._metrics

        total = max(metrics.total_operations, 1)
        success_rate = metrics.successful_operations / total * 100
        enhancement_rate = metrics.enhanced_operations / total * 100
        average_execution_time = (
            self._total_execution_ms / self._timed_operations
            if self._timed_operations
            else 0.0
        )

        healthy = success_rate >= HEALTHY_SUCCESS_RATE and metrics.uptime_ms > 0

        issues = None
        if not healthy:
            issues = ["Success rate below threshold"]
            if (
                self.ledger.enhancements.count()
                and metrics.average_enhancement_level < self.config.min_enhancement_level
            ):
                issues.append("Average enhancement level below minimum")

        return HealthCheck(
            healthy=healthy,
            status="healthy" if healthy else "degraded",
            timestamp=datetime.now(timezone.utc),
            metrics=HealthMetrics(
                uptime_ms=metrics.uptime_ms,
                enhancement_rate=enhancement_rate,
                success_rate=success_rate,
                average_execution_time_ms=average_execution_time,
            ),
            issues=issues,
        )

    # --- Ledger, Learning & Configuration Access ---

    def get_enhancements(self) -> List[Enhancement]:
        return self.ledger.enhancements.all()

    def get_recommendations(self) -> List[Recommendation]:
        return self.ledger.recommendations.all()

    def get_top_recommendations(self, limit: int = 10) -> List[Recommendation]:
        return self.ledger.top_recommendations(limit)

    def mark_recommendation_implemented(self, recommendation_id: str) -> bool:
        implemented = self.ledger.recommendations.mark_implemented(recommendation_id)
        self._update_metrics()
        return implemented

    def generate_insights(self) -> List[LearningInsight]:
        """Run an insight pass over the learned operation patterns."""
        return self.learning.generate_insights()

    def get_config(self) -> ProtocolConfig:
        return self.config.model_copy()

    def update_config(self, config: ProtocolConfig) -> ProtocolConfig:
        self.config = config
        self._log(
            "info",
            "Protocol configuration updated",
            {"config": config.model_dump(mode="json")},
        )
        return self.get_config()

    # --- Monitoring ---

    async def run_monitor_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Log a health check every ``monitoring_interval`` milliseconds."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                health = self.get_health_check()
                self._log(
                    "info" if health.healthy else "error",
                    "Health check",
                    {
                        "status": health.status,
                        "success_rate": health.metrics.success_rate,
                        "issues": health.issues or [],
                    },
                )
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self.config.monitoring_interval / 1000,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
