# ABOUTME: Safety utilities for the Kapacitor provider MCP host
# ABOUTME: Implements read-only mode, delete guards, and confirmation patterns

"""Safety utilities guarding lifecycle calls issued through the MCP host."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from kapacitor_provider.config import SecuritySettings

logger = structlog.get_logger(__name__)


@dataclass
class ConfirmationRequired:
    """Response indicating confirmation is required before deleting a task."""

    operation: str
    target: str
    impact: str
    confirmation_instructions: str
    details: dict[str, Any] = field(default_factory=dict)

    def format_message(self) -> str:
        """Format confirmation request for agent consumption."""
        lines = [
            f"CONFIRMATION REQUIRED: {self.operation}",
            "",
            f"Target: {self.target}",
            f"Impact: {self.impact}",
        ]

        if self.details:
            lines.append("")
            lines.append("Details:")
            for key, value in self.details.items():
                lines.append(f"  {key}: {value}")

        lines.extend(["", self.confirmation_instructions])
        return "\n".join(lines)


@dataclass
class OperationBlocked:
    """Response indicating operation is blocked by security settings."""

    operation: str
    reason: str
    setting: str

    def format_message(self) -> str:
        """Format blocked message for agent consumption."""
        return (
            f"OPERATION BLOCKED: {self.operation}\n"
            f"Reason: {self.reason}\n"
            f"Setting: {self.setting}\n"
            f"To enable: Set {self.setting}=false in server configuration"
        )


class SafetyGuard:
    """Safety guard for create/update/delete calls."""

    def __init__(self, settings: SecuritySettings) -> None:
        self._settings = settings

    def check_write_operation(self, operation: str) -> OperationBlocked | None:
        """Check if a create or update is allowed.

        Args:
            operation: Operation name

        Returns:
            OperationBlocked if blocked, None if allowed
        """
        if self._settings.read_only:
            logger.info("Write blocked", operation=operation)
            return OperationBlocked(
                operation=operation,
                reason="Server is running in read-only mode",
                setting="MCP_READ_ONLY",
            )
        return None

    def check_destructive_operation(
        self,
        operation: str,
        target: str,
        confirmed: bool = False,
        confirm_id: str | None = None,
    ) -> OperationBlocked | ConfirmationRequired | None:
        """Check if a delete is allowed.

        Args:
            operation: Operation name
            target: Task id being deleted
            confirmed: Whether the caller has confirmed
            confirm_id: Task id confirmation (must match target)

        Returns:
            OperationBlocked if blocked, ConfirmationRequired if needs confirmation,
            None if allowed
        """
        write_check = self.check_write_operation(operation)
        if write_check:
            return write_check

        if self._settings.disable_destructive:
            return OperationBlocked(
                operation=operation,
                reason="Destructive operations are disabled",
                setting="MCP_DISABLE_DESTRUCTIVE",
            )

        if not confirmed or confirm_id != target:
            return ConfirmationRequired(
                operation=operation,
                target=target,
                impact="The Kapacitor task will be PERMANENTLY DELETED and stop processing data",
                confirmation_instructions=(
                    f"To proceed, set confirm=true AND confirm_id='{target}'"
                ),
            )

        return None
