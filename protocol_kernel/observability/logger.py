"""
Structured logging for the Protocol Kernel.

Every component logs through a ProtocolLogger, which wraps a structlog
bound logger behind the collaborator shape the pipeline expects:
``info(message, context)`` and ``error(message, context)``.

Logging is fire-and-forget. A failure while emitting a log line is
contained here and never reaches the operation being orchestrated.

Environment Variables:
    PROTOCOL_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default INFO)
    PROTOCOL_LOG_FORMAT: console | json (default console)
"""

import logging
import os
from typing import Optional

import structlog

DEFAULT_LOGGER_NAME = "protocol_kernel"


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the structlog processor chain for the whole process."""
    level_name = (level or os.getenv("PROTOCOL_LOG_LEVEL", "INFO")).upper()
    if json_format is None:
        json_format = os.getenv("PROTOCOL_LOG_FORMAT", "console") == "json"

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


class ProtocolLogger:
    """Logger collaborator used by the orchestrator and the healing engine."""

    def __init__(self, name: str = DEFAULT_LOGGER_NAME, bound=None, **context):
        self.name = name
        if bound is None:
            bound = structlog.get_logger(name)
        self._logger = bound.bind(**context)

    def bind(self, **context) -> "ProtocolLogger":
        """Return a logger that adds ``context`` to every line."""
        return ProtocolLogger(self.name, bound=self._logger, **context)

    def debug(self, message: str, context: Optional[dict] = None) -> None:
        self._emit("debug", message, context)

    def info(self, message: str, context: Optional[dict] = None) -> None:
        self._emit("info", message, context)

    def warning(self, message: str, context: Optional[dict] = None) -> None:
        self._emit("warning", message, context)

    def error(self, message: str, context: Optional[dict] = None) -> None:
        self._emit("error", message, context)

    def _emit(self, method: str, message: str, context: Optional[dict]) -> None:
        try:
            getattr(self._logger, method)(message, **(context or {}))
        except Exception:
            # A broken sink or a clashing context key must not fail the caller.
            return
