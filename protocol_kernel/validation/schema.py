"""
Schema validation at the kernel boundary.

Each validator checks untrusted data against the corresponding pydantic
model and reports a plain pass/fail. Validation failures never surface
through the orchestrator's own result type.
"""

from typing import Any, Type

from pydantic import BaseModel, ValidationError

from protocol_kernel.models.config import ProtocolConfig
from protocol_kernel.models.enhancement import Enhancement, Recommendation
from protocol_kernel.models.operation import HealthCheck, OperationResult


def _conforms(model: Type[BaseModel], data: Any) -> bool:
    if isinstance(data, model):
        data = data.model_dump()
    try:
        model.model_validate(data)
    except ValidationError:
        return False
    return True


def validate_enhancement(data: Any) -> bool:
    return _conforms(Enhancement, data)


def validate_recommendation(data: Any) -> bool:
    return _conforms(Recommendation, data)


def validate_operation_result(data: Any) -> bool:
    return _conforms(OperationResult, data)


def validate_protocol_config(data: Any) -> bool:
    return _conforms(ProtocolConfig, data)


def validate_health_check(data: Any) -> bool:
    return _conforms(HealthCheck, data)
