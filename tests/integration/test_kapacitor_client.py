# ABOUTME: Integration tests for the Kapacitor client and resource lifecycle
# ABOUTME: Requires a reachable Kapacitor server configured through KAPACITOR_* variables

"""Integration tests against a live Kapacitor server.

These tests require:
- KAPACITOR_URL pointing at a Kapacitor server (e.g. http://localhost:9092)
- KAPACITOR_AUTH_* variables if the server requires authentication
- A database "telegraf" with retention policy "autogen" known to Kapacitor

A temporary task is created and deleted by each lifecycle test.
"""

from __future__ import annotations

import uuid

import pytest

from kapacitor_provider.provider import get_resource
from kapacitor_provider.utils.client import KapacitorClient

TEST_SCRIPT = """stream
    |from()
        .measurement('integration_test')
    |log()"""


def _require(client: KapacitorClient | None) -> KapacitorClient:
    if client is None:
        pytest.skip("KAPACITOR_URL not set")
    return client


@pytest.mark.integration
class TestKapacitorIntegration:
    """Lifecycle tests against a live server."""

    async def test_ping(self, live_kapacitor_client: KapacitorClient | None):
        """Test the server answers ping with a version."""
        client = _require(live_kapacitor_client)

        elapsed, version = await client.ping()

        assert elapsed >= 0
        assert version

    async def test_get_missing_task(self, live_kapacitor_client: KapacitorClient | None):
        """Test a task that was never created reads as None."""
        client = _require(live_kapacitor_client)

        task = await client.get_task(client.task_link(f"missing_{uuid.uuid4().hex[:8]}"))

        assert task is None

    async def test_tick_script_lifecycle(self, live_kapacitor_client: KapacitorClient | None):
        """Test create, read, update and delete of a tick script."""
        client = _require(live_kapacitor_client)
        resource = get_resource("kapacitor_tick_script")
        data = resource.load(
            {
                "type": "stream",
                "status": "disabled",
                "tick_script": TEST_SCRIPT,
                "database_retention_policies": ['"telegraf"."autogen"'],
            }
        )

        await resource.create(data, client)
        try:
            assert data.id
            assert data.database_retention_policies == ["telegraf.autogen"]
            assert data.tick_script == TEST_SCRIPT

            data.status = "enabled"
            await resource.update(data, client)
            assert data.status == "enabled"

            await resource.read(data, client)
            assert data.id
        finally:
            if data.id:
                await resource.delete(data, client)

        assert data.id == ""
