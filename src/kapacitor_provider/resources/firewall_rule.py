# ABOUTME: Firewall rule resource for the Kapacitor provider
# ABOUTME: Declares network access rules for a cluster, stored as a Kapacitor task

"""kapacitor_firewall_rule resource."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from kapacitor_provider.resources.base import Resource, TaskResourceData


class FirewallRuleSpec(BaseModel):
    """Network and rule list, also embedded in cluster definitions."""

    model_config = ConfigDict(extra="forbid")

    network: str = Field(description="CIDR the rules apply to, e.g. 10.0.0.0/16")
    rules: list[str] = Field(description="Rule types allowed from the network")


class FirewallRuleData(TaskResourceData, FirewallRuleSpec):
    """Firewall rule attached to an existing cluster."""

    cluster_id: str = Field(description="Cluster the rule belongs to")


RESOURCE = Resource(name="kapacitor_firewall_rule", schema=FirewallRuleData)
