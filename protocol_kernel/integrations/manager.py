"""
Integration adapters and the Integration Manager.

An adapter is anything with the four-method lifecycle (connect,
disconnect, send, receive) plus is_connected(). Adapters are registered
by name in the manager's table. The HTTP and WebSocket adapters shipped
here are in-memory stand-ins: they track connection state and loop sent
payloads back to receive(), without performing network I/O.
"""

import asyncio
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Protocol

from protocol_kernel.models.integration import IntegrationConfig


class NotConnectedError(RuntimeError):
    """Raised when send/receive is called on a disconnected adapter."""
    pass


class IntegrationAdapter(Protocol):
    """Capability interface for pluggable integrations."""

    name: str

    async def connect(self) -> bool: ...

    async def disconnect(self) -> bool: ...

    async def send(self, payload: Any) -> bool: ...

    async def receive(self) -> Any: ...

    def is_connected(self) -> bool: ...


class _LoopbackAdapter:
    """Connection bookkeeping shared by the stand-in adapters."""

    transport = "loopback"

    def __init__(self, name: str, target: str):
        self.name = name
        self.target = target
        self._connected = False
        self._inbox: Deque[Any] = deque()

    async def connect(self) -> bool:
        self._connected = True
        return True

    async def disconnect(self) -> bool:
        self._connected = False
        self._inbox.clear()
        return True

    async def send(self, payload: Any) -> bool:
        self._require_connection()
        self._inbox.append(payload)
        return True

    async def receive(self) -> Any:
        self._require_connection()
        if self._inbox:
            return self._inbox.popleft()
        return {}

    def is_connected(self) -> bool:
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected:
            raise NotConnectedError(
                f"{self.transport} adapter '{self.name}' is not connected"
            )


class HttpIntegrationAdapter(_LoopbackAdapter):
    transport = "http"

    def __init__(self, name: str, endpoint: str):
        super().__init__(name, endpoint)

    @property
    def endpoint(self) -> str:
        return self.target


class WebSocketIntegrationAdapter(_LoopbackAdapter):
    transport = "websocket"

    def __init__(self, name: str, url: str):
        super().__init__(name, url)

    @property
    def url(self) -> str:
        return self.target


def build_adapter(config: IntegrationConfig) -> IntegrationAdapter:
    """Construct an adapter from its declared configuration."""
    if config.type == "http":
        return HttpIntegrationAdapter(config.name, config.config.get("endpoint", ""))
    if config.type == "websocket":
        return WebSocketIntegrationAdapter(config.name, config.config.get("url", ""))
    raise ValueError(f"Unknown integration type: {config.type}")


class IntegrationManager:
    """Named adapter table with all-or-nothing bulk lifecycle calls."""

    def __init__(self):
        self._adapters: Dict[str, IntegrationAdapter] = {}

    def register_adapter(self, adapter: IntegrationAdapter) -> None:
        """Register an adapter, replacing any adapter with the same name."""
        self._adapters[adapter.name] = adapter

    def register_from_config(self, configs: List[IntegrationConfig]) -> None:
        """Build and register every enabled adapter in ``configs``."""
        for config in configs:
            if config.enabled:
                self.register_adapter(build_adapter(config))

    def get_adapter(self, name: str) -> Optional[IntegrationAdapter]:
        return self._adapters.get(name)

    def get_adapters(self) -> List[IntegrationAdapter]:
        return list(self._adapters.values())

    def get_connected_adapters(self) -> List[IntegrationAdapter]:
        return [a for a in self._adapters.values() if a.is_connected()]

    async def connect_all(self) -> bool:
        """Connect every adapter concurrently. True only if all succeed."""
        results = await asyncio.gather(
            *(adapter.connect() for adapter in self._adapters.values())
        )
        return all(results)

    async def disconnect_all(self) -> bool:
        """Disconnect every adapter concurrently. True only if all succeed."""
        results = await asyncio.gather(
            *(adapter.disconnect() for adapter in self._adapters.values())
        )
        return all(results)
