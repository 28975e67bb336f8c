# ABOUTME: Tick script resource for the Kapacitor provider
# ABOUTME: A Kapacitor task described only by its script and data sources

"""kapacitor_tick_script resource."""

from __future__ import annotations

from kapacitor_provider.resources.base import Resource, TaskResourceData


class TickScriptData(TaskResourceData):
    """A bare task: type, status, TICKscript and retention policies."""


RESOURCE = Resource(name="kapacitor_tick_script", schema=TickScriptData)
