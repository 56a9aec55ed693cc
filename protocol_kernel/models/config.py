"""Protocol configuration consumed by the orchestrator."""

from typing import Optional

from pydantic import BaseModel, Field

from protocol_kernel.models.enhancement import EnhancementLevel


class ProtocolConfig(BaseModel):
    """Configuration for the Protocol Orchestrator."""

    min_enhancement_level: EnhancementLevel = EnhancementLevel.ENHANCED
    enable_self_healing: bool = True
    enable_self_learning: bool = True
    enable_continuous_improvement: bool = True
    monitoring_interval: int = Field(ge=1000, le=3_600_000, default=60_000)  # ms
    max_recommendations: int = Field(ge=1, le=100, default=50)
    operation_timeout_seconds: Optional[float] = Field(gt=0, default=None)
    version: str = "1.0.0"
