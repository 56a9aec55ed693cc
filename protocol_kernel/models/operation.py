"""Operation results, system metrics and health check snapshots."""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from protocol_kernel.models.enhancement import (
    Enhancement,
    EnhancementLevel,
    Recommendation,
)


class OperationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"
    ENHANCED = "enhanced"


class OperationMetadata(BaseModel):
    execution_time_ms: float = Field(ge=0)
    timestamp: datetime
    version: str


class OperationResult(BaseModel):
    """Outcome of one orchestrated execution."""

    success: bool
    status: OperationStatus
    data: Any = None
    enhancements: List[Enhancement] = []
    recommendations: List[Recommendation] = []
    metadata: OperationMetadata


class SystemMetrics(BaseModel):
    """Aggregate counters owned by one orchestrator instance."""

    total_operations: int = 0
    successful_operations: int = 0
    failed_operations: int = 0               # Includes failures later healed
    enhanced_operations: int = 0
    healed_operations: int = 0
    average_enhancement_level: float = float(EnhancementLevel.BASELINE)
    total_recommendations: int = 0
    implemented_recommendations: int = 0
    uptime_ms: float = 0.0
    last_update: datetime


class HealthMetrics(BaseModel):
    uptime_ms: float = Field(ge=0)
    enhancement_rate: float = Field(ge=0, le=100)
    success_rate: float = Field(ge=0, le=100)
    average_execution_time_ms: float = Field(ge=0)


class HealthCheck(BaseModel):
    healthy: bool
    status: str                              # "healthy" | "degraded"
    timestamp: datetime
    metrics: HealthMetrics
    issues: Optional[List[str]] = None
