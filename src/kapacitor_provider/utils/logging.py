# ABOUTME: Structured logging with correlation IDs for the Kapacitor provider
# ABOUTME: Configures structlog and records an audit trail of lifecycle calls

"""
Structured logging with correlation IDs and audit trails.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

1. STRUCTURED LOGGING: structlog emits key/value events, rendered as
   colored console lines in development or JSON lines in production.

2. CORRELATION IDs: every event carries a short id linking all log lines
   written while handling one request (one create/read/update/delete call).

3. AUDIT LOGGING: every lifecycle call against Kapacitor is recorded with
   its resource kind, task id, and outcome.

Example events for one create:

    {"correlation_id": "a1b2c3d4", "event": "Creating task", "kind": "kapacitor_tick_script"}
    {"correlation_id": "a1b2c3d4", "event": "Making Kapacitor API request", "method": "POST"}
    {"correlation_id": "a1b2c3d4", "event": "audit", "action": "create", "result": "success"}

=============================================================================
CONTEXT VARIABLES (contextvars)
=============================================================================

The correlation id lives in a ContextVar, so concurrent async requests in
the MCP host each see their own value without passing it through every call.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path


# =============================================================================
# CORRELATION ID MANAGEMENT
# =============================================================================

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Code running outside a request (startup, configure) still gets an id,
    so every log line is correlatable.

    Returns:
        8-character correlation ID string.
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """
    Set correlation ID for current context.

    Args:
        cid: Request id from the MCP context, or "" to have one generated
             on next access.
    """
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor adding the correlation ID to each event."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging.

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: values bound with structlog.contextvars
    2. add_log_level: "level" field
    3. TimeStamper: ISO 8601 "timestamp" field
    4. add_correlation_id: our correlation id
    5. Renderer: JSON or colored console

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown values fall
               back to INFO.
        json_output: Emit JSON lines instead of colored console output.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Audit logger for resource lifecycle calls.

    Every entry records:
    - timestamp: UTC ISO 8601
    - correlation_id: request identifier
    - action: "create", "read", "update" or "delete"
    - target: "<resource kind>/<task id>"
    - result: "success", "absent", "blocked" or "error"
    - details: optional extra context

    Entries are appended to a JSON-lines file when a path is given,
    otherwise emitted through structlog under the "audit" logger.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        """
        Initialize audit logger.

        Args:
            log_path: File to append JSON lines to, or None for structlog.
                      The parent directory must exist.
        """
        self._log_path = log_path
        self._logger = structlog.get_logger("audit")

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Write one audit entry."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "action": action,
            "target": target,
            "result": result,
        }
        if details:
            entry["details"] = details

        if self._log_path:
            with self._log_path.open("a") as f:
                f.write(json.dumps(entry) + "\n")
        else:
            self._logger.info(
                "audit",
                action=action,
                target=target,
                result=result,
                details=details,
            )

    def log_success(
        self,
        action: str,
        target: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.log(action, target, "success", details)

    def log_absent(self, action: str, target: str) -> None:
        """Log that the remote task no longer exists."""
        self.log(action, target, "absent")

    def log_blocked(self, action: str, target: str, reason: str) -> None:
        """Log an operation prevented by safety checks."""
        self.log(action, target, "blocked", {"reason": reason})

    def log_error(self, action: str, target: str, error: str) -> None:
        self.log(action, target, "error", {"error": error})
