"""Protocol Kernel data models."""

from protocol_kernel.models.config import ProtocolConfig
from protocol_kernel.models.enhancement import (
    Enhancement,
    EnhancementLevel,
    Priority,
    Recommendation,
)
from protocol_kernel.models.healing import (
    HealingAttempt,
    HealingConfig,
    HealingStrategy,
    pattern_matcher,
)
from protocol_kernel.models.integration import IntegrationConfig
from protocol_kernel.models.learning import LearningInsight, LearningPattern
from protocol_kernel.models.operation import (
    HealthCheck,
    HealthMetrics,
    OperationMetadata,
    OperationResult,
    OperationStatus,
    SystemMetrics,
)

__all__ = [
    "Enhancement",
    "EnhancementLevel",
    "HealingAttempt",
    "HealingConfig",
    "HealingStrategy",
    "HealthCheck",
    "HealthMetrics",
    "IntegrationConfig",
    "LearningInsight",
    "LearningPattern",
    "OperationMetadata",
    "OperationResult",
    "OperationStatus",
    "Priority",
    "ProtocolConfig",
    "Recommendation",
    "SystemMetrics",
    "pattern_matcher",
]
