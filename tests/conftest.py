# ABOUTME: Pytest fixtures and configuration for Kapacitor provider tests
# ABOUTME: Provides shared fixtures for unit and integration tests

import os
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from kapacitor_provider.config import ProviderSettings, SecuritySettings
from kapacitor_provider.provider import configure
from kapacitor_provider.utils.client import KapacitorClient, Task, TaskStatus, TaskType
from kapacitor_provider.utils.identifiers import QualifiedIdentifier
from kapacitor_provider.utils.safety import SafetyGuard

KAPACITOR_URL = "http://kapacitor.test:9092"

CPU_ALERT_SCRIPT = """stream
    |from()
        .measurement('cpu')
    |alert()
        .crit(lambda: "usage_idle" < 10)
"""


@pytest.fixture
def provider_settings() -> ProviderSettings:
    """Create provider settings pointing at a fake server."""
    return ProviderSettings(
        url=KAPACITOR_URL,
        auth_username="admin",
        auth_password=SecretStr("secret"),
        timeout_seconds=5,
    )


@pytest.fixture
def write_security_settings() -> SecuritySettings:
    """Create security settings allowing writes and deletes."""
    return SecuritySettings(read_only=False, disable_destructive=False, audit_log=None)


@pytest.fixture
def read_only_security_settings() -> SecuritySettings:
    """Create read-only security settings for testing."""
    return SecuritySettings(read_only=True, disable_destructive=True, audit_log=None)


@pytest.fixture
def safety_guard(write_security_settings: SecuritySettings) -> SafetyGuard:
    """Create a safety guard allowing writes."""
    return SafetyGuard(write_security_settings)


@pytest.fixture
def read_only_safety_guard(read_only_security_settings: SecuritySettings) -> SafetyGuard:
    """Create a read-only safety guard for testing."""
    return SafetyGuard(read_only_security_settings)


@pytest.fixture
def sample_task() -> Task:
    """Create a sample task as returned by Kapacitor."""
    return Task(
        id="cpu_alert",
        type=TaskType.STREAM,
        status=TaskStatus.ENABLED,
        script="\n" + CPU_ALERT_SCRIPT,
        dbrps=[QualifiedIdentifier("telegraf", "autogen")],
        executing=True,
    )


@pytest.fixture
def cpu_alert_script() -> str:
    """The sample TICKscript as stored on a resource (outer newlines trimmed)."""
    return CPU_ALERT_SCRIPT.strip("\n")


@pytest.fixture
def tick_script_attributes(cpu_alert_script: str) -> dict:
    """Desired attributes for a tick script resource."""
    return {
        "type": "stream",
        "status": "enabled",
        "tick_script": cpu_alert_script,
        "database_retention_policies": ['"telegraf"."autogen"'],
    }


@pytest.fixture
def mock_kapacitor_client(sample_task: Task) -> AsyncMock:
    """Create a mock Kapacitor client."""
    client = AsyncMock(spec=KapacitorClient)
    client.task_link = MagicMock(side_effect=KapacitorClient.task_link)

    client.create_task.return_value = sample_task
    client.get_task.return_value = sample_task
    client.update_task.return_value = sample_task
    client.delete_task.return_value = None
    client.ping.return_value = (0.01, "1.7.0")

    return client


@pytest.fixture
def mock_context() -> MagicMock:
    """Create a mock MCP context."""
    ctx = MagicMock()
    ctx.request_id = "test-request-123"
    ctx.report_progress = AsyncMock()
    return ctx


# Integration test fixtures


@pytest.fixture
def live_settings() -> ProviderSettings | None:
    """Build settings from KAPACITOR_* environment variables, if configured."""
    if not os.environ.get("KAPACITOR_URL"):
        return None
    return ProviderSettings()


@pytest.fixture
async def live_kapacitor_client(
    live_settings: ProviderSettings | None,
) -> AsyncIterator[KapacitorClient | None]:
    """Create a configured client for a live Kapacitor server."""
    if live_settings is None:
        yield None
        return

    client = await configure(live_settings)
    try:
        yield client
    finally:
        await client.__aexit__(None, None, None)
