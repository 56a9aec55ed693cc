"""
API Controller — uniform response envelopes over the orchestrator.

Every method returns an ApiResponse. Exceptions never escape: they are
converted into ``success=False`` with the error text.
"""

import inspect
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel

from protocol_kernel.observability.logger import ProtocolLogger
from protocol_kernel.orchestrator.protocol import ProtocolOrchestrator

OperationHandler = Callable[[dict], Union[Any, Awaitable[Any]]]


class ApiRequest(BaseModel):
    operation: str
    params: dict = {}
    metadata: dict = {}


class ApiResponse(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    timestamp: datetime


def _echo(request: ApiRequest) -> OperationHandler:
    def handler(params: dict) -> dict:
        return {"operation": request.operation, "params": params}
    return handler


class ProtocolApiController:
    """Wraps orchestrator calls for the HTTP layer."""

    def __init__(
        self,
        orchestrator: ProtocolOrchestrator,
        logger: Optional[ProtocolLogger] = None,
    ):
        self.orchestrator = orchestrator
        self._logger = logger or ProtocolLogger("protocol_kernel.api")
        self._operations: Dict[str, OperationHandler] = {}

    def register_operation(self, name: str, handler: OperationHandler) -> None:
        """Register a named handler for execute_operation. Receives the params."""
        self._operations[name] = handler

    async def health_check(self) -> ApiResponse:
        return await self._respond(self.orchestrator.get_health_check)

    async def get_metrics(self) -> ApiResponse:
        return await self._respond(self.orchestrator.get_metrics)

    async def get_enhancements(self) -> ApiResponse:
        return await self._respond(self.orchestrator.get_enhancements)

    async def get_recommendations(self, limit: Optional[int] = None) -> ApiResponse:
        """Top ``limit`` recommendations by impact, or all of them."""
        if limit:
            return await self._respond(
                lambda: self.orchestrator.get_top_recommendations(limit)
            )
        return await self._respond(self.orchestrator.get_recommendations)

    async def get_config(self) -> ApiResponse:
        return await self._respond(self.orchestrator.get_config)

    async def execute_operation(self, request: ApiRequest) -> ApiResponse:
        """
        Run a registered operation through the pipeline. Unregistered names
        echo the request back as the operation's result.
        """
        handler = self._operations.get(request.operation) or _echo(request)
        return await self._respond(
            lambda: self.orchestrator.execute(
                lambda: handler(request.params),
                request.operation,
            )
        )

    async def _respond(self, producer: Callable[[], Any]) -> ApiResponse:
        try:
            data = producer()
            if inspect.isawaitable(data):
                data = await data
        except Exception as e:
            self._logger.error("API request failed", {"error": str(e)})
            return ApiResponse(
                success=False,
                error=str(e),
                timestamp=datetime.now(timezone.utc),
            )
        return ApiResponse(
            success=True,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
