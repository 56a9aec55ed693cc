"""Integration adapter configuration."""

from pydantic import BaseModel


class IntegrationConfig(BaseModel):
    """Declares one named adapter for the Integration Manager."""

    name: str
    type: str                               # "http" | "websocket"
    enabled: bool = True
    config: dict = {}                       # e.g., {"endpoint": "..."} or {"url": "..."}
