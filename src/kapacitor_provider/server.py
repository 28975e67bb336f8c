# ABOUTME: FastMCP server exposing the provider's resource lifecycle
# ABOUTME: Configures the Kapacitor client and guards create/read/update/delete tools

"""Kapacitor provider MCP server - declarative task reconciliation."""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from mcp.server.fastmcp import Context, FastMCP
from pydantic import BaseModel, Field

from kapacitor_provider.config import ProviderSettings, load_settings
from kapacitor_provider.provider import RESOURCES, configure, get_resource
from kapacitor_provider.utils.client import KapacitorClient, KapacitorError
from kapacitor_provider.utils.logging import AuditLogger, configure_logging, set_correlation_id
from kapacitor_provider.utils.safety import ConfirmationRequired, SafetyGuard

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from kapacitor_provider.resources.base import TaskResourceData

MCPContext = Context[Any, Any]
logger = structlog.get_logger(__name__)

# Global state (initialized in lifespan)
_settings: ProviderSettings | None = None
_client: KapacitorClient | None = None
_safety_guard: SafetyGuard | None = None
_audit_logger: AuditLogger | None = None


@asynccontextmanager
async def lifespan(_server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage server lifecycle: load config, configure client, cleanup on shutdown."""
    global _settings, _client, _safety_guard, _audit_logger

    logger.info("Starting Kapacitor provider server")

    _settings = load_settings()
    configure_logging(level=_settings.log_level)
    _safety_guard = SafetyGuard(_settings.security)
    _audit_logger = AuditLogger(_settings.security.audit_log)
    _client = await configure(_settings)

    yield {"settings": _settings, "client": _client}

    await _client.__aexit__(None, None, None)
    _client = None
    logger.info("Kapacitor provider server stopped")


mcp = FastMCP("kapacitor-provider", lifespan=lifespan)


def get_client() -> KapacitorClient:
    """Get the configured Kapacitor client."""
    if not _client:
        raise RuntimeError("Server not initialized")
    return _client


def get_settings() -> ProviderSettings:
    """Get provider settings."""
    if not _settings:
        raise RuntimeError("Server not initialized")
    return _settings


def get_safety_guard() -> SafetyGuard:
    """Get safety guard for permission checking."""
    if not _safety_guard:
        raise RuntimeError("Server not initialized")
    return _safety_guard


def get_audit_logger() -> AuditLogger:
    """Get audit logger for recording operations."""
    if not _audit_logger:
        raise RuntimeError("Server not initialized")
    return _audit_logger


def _target(kind: str, task_id: str) -> str:
    return f"{kind}/{task_id or '-'}"


def _format_state(kind: str, data: TaskResourceData) -> str:
    lines = [f"Resource: {kind}", f"ID: {data.id}", ""]
    for key, value in data.model_dump(mode="json", exclude={"id"}).items():
        lines.append(f"  {key}: {value}")
    return "\n".join(lines)


# =============================================================================
# READ
# =============================================================================


class ReadResourceParams(BaseModel):
    """Parameters for read_resource tool."""

    kind: str = Field(description="Resource kind, e.g. kapacitor_tick_script")
    attributes: dict[str, Any] = Field(description="Current resource attributes including id")


@mcp.tool()
async def read_resource(params: ReadResourceParams, ctx: MCPContext) -> str:
    """
    Refresh a resource from its Kapacitor task.

    Returns the current remote state, or reports the resource as absent
    when its task no longer exists.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    try:
        resource = get_resource(params.kind)
        data = resource.load(params.attributes)
        task_id = data.id
        await resource.read(data, get_client())
    except (KapacitorError, ValueError) as e:
        target = _target(params.kind, str(params.attributes.get("id", "")))
        get_audit_logger().log_error("read", target, str(e))
        return str(e)

    if not data.id:
        get_audit_logger().log_absent("read", _target(params.kind, task_id))
        return f"Resource '{task_id}' no longer exists; treat it as absent."

    get_audit_logger().log_success("read", _target(params.kind, data.id))
    return _format_state(params.kind, data)


# =============================================================================
# WRITE (Require MCP_READ_ONLY=false)
# =============================================================================


class CreateResourceParams(BaseModel):
    """Parameters for create_resource tool."""

    kind: str = Field(description="Resource kind, e.g. kapacitor_tick_script")
    attributes: dict[str, Any] = Field(description="Desired resource attributes")


@mcp.tool()
async def create_resource(params: CreateResourceParams, ctx: MCPContext) -> str:
    """
    Create a resource by creating its Kapacitor task.

    Returns the state read back after creation, including the new id.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    blocked = get_safety_guard().check_write_operation("create_resource")
    if blocked:
        get_audit_logger().log_blocked("create", _target(params.kind, ""), blocked.reason)
        return blocked.format_message()

    try:
        resource = get_resource(params.kind)
        data = resource.load(params.attributes)
        await resource.create(data, get_client())
    except (KapacitorError, ValueError) as e:
        get_audit_logger().log_error("create", _target(params.kind, ""), str(e))
        return str(e)

    get_audit_logger().log_success("create", _target(params.kind, data.id))
    return _format_state(params.kind, data)


class UpdateResourceParams(BaseModel):
    """Parameters for update_resource tool."""

    kind: str = Field(description="Resource kind, e.g. kapacitor_tick_script")
    attributes: dict[str, Any] = Field(description="Desired resource attributes including id")


@mcp.tool()
async def update_resource(params: UpdateResourceParams, ctx: MCPContext) -> str:
    """Update a resource's Kapacitor task and return the state read back."""
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    blocked = get_safety_guard().check_write_operation("update_resource")
    if blocked:
        target = _target(params.kind, str(params.attributes.get("id", "")))
        get_audit_logger().log_blocked("update", target, blocked.reason)
        return blocked.format_message()

    try:
        resource = get_resource(params.kind)
        data = resource.load(params.attributes)
        task_id = data.id
        await resource.update(data, get_client())
    except (KapacitorError, ValueError) as e:
        target = _target(params.kind, str(params.attributes.get("id", "")))
        get_audit_logger().log_error("update", target, str(e))
        return str(e)

    if not data.id:
        get_audit_logger().log_absent("update", _target(params.kind, task_id))
        return f"Resource '{task_id}' no longer exists after update; treat it as absent."

    get_audit_logger().log_success("update", _target(params.kind, data.id))
    return _format_state(params.kind, data)


class DeleteResourceParams(BaseModel):
    """Parameters for delete_resource tool."""

    kind: str = Field(description="Resource kind, e.g. kapacitor_tick_script")
    attributes: dict[str, Any] = Field(description="Current resource attributes including id")
    confirm: bool = Field(default=False, description="Must be true to delete")
    confirm_id: str | None = Field(
        default=None, description="Must match the task id to confirm deletion"
    )


@mcp.tool()
async def delete_resource(params: DeleteResourceParams, ctx: MCPContext) -> str:
    """
    Delete a resource's Kapacitor task.

    DESTRUCTIVE: requires MCP_DISABLE_DESTRUCTIVE=false plus confirm=true
    and confirm_id matching the task id.
    """
    set_correlation_id(ctx.request_id if hasattr(ctx, "request_id") else "")

    task_id = str(params.attributes.get("id", ""))
    target = _target(params.kind, task_id)

    blocked = get_safety_guard().check_destructive_operation(
        "delete_resource",
        task_id,
        confirmed=params.confirm,
        confirm_id=params.confirm_id,
    )
    if blocked:
        if isinstance(blocked, ConfirmationRequired):
            blocked.details = {"kind": params.kind}
            get_audit_logger().log_blocked("delete", target, "confirmation required")
        else:
            get_audit_logger().log_blocked("delete", target, blocked.reason)
        return blocked.format_message()

    try:
        resource = get_resource(params.kind)
        data = resource.load(params.attributes)
        await resource.delete(data, get_client())
    except (KapacitorError, ValueError) as e:
        get_audit_logger().log_error("delete", target, str(e))
        return str(e)

    get_audit_logger().log_success("delete", target)
    return f"Resource '{task_id}' deleted successfully."


# =============================================================================
# MCP RESOURCES
# =============================================================================


@mcp.resource("kapacitor://provider")
async def get_provider_resource() -> str:
    """Get the configured server and available resource kinds."""
    settings = get_settings()
    lines = [
        "Kapacitor Provider:",
        f"  URL: {settings.url}",
        f"  Timeout: {settings.timeout_seconds}s",
        f"  TLS verification: {not settings.insecure_skip_verify}",
        "",
        "Resource kinds:",
    ]
    lines.extend(f"  - {kind}" for kind in sorted(RESOURCES))
    return "\n".join(lines)


@mcp.resource("kapacitor://security")
async def get_security_resource() -> str:
    """Get current security settings."""
    sec = get_settings().security
    return (
        "Security Settings:\n"
        f"  Read-only mode: {sec.read_only}\n"
        f"  Destructive operations disabled: {sec.disable_destructive}\n"
        f"  Audit log: {sec.audit_log or 'stdout'}"
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main() -> None:
    """Run the Kapacitor provider MCP server."""
    configure_logging(level="INFO")
    logger.info("Kapacitor provider server starting")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server interrupted")
        sys.exit(0)
    except Exception as e:
        logger.error("Server error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
