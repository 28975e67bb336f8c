# ABOUTME: Cassandra cluster resource for the Kapacitor provider
# ABOUTME: Declares cluster sizing, networking and firewall rules as a Kapacitor task

"""
kapacitor_cassandra_cluster resource.

Cluster flags (client_encryption, authn_authz, ...) are kept as the strings
"true"/"false" because that is how definitions and the remote API express
them; they are passed through untouched.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kapacitor_provider.resources.base import Resource, TaskResourceData
from kapacitor_provider.resources.firewall_rule import FirewallRuleSpec


class ClusterNode(BaseModel):
    """A node of the cluster (computed)."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    rack: str = ""
    size: str = ""
    public_address: str = ""
    private_address: str = ""


class VpcPeeringConnection(BaseModel):
    """Peering between the cluster VPC and one of the user's VPCs."""

    model_config = ConfigDict(extra="forbid")

    peer_account_id: str
    peer_vpc_id: str
    peer_subnet: str


class CassandraClusterData(TaskResourceData):
    """Cassandra cluster definition."""

    cluster_name: str
    provider: str = "AWS_VPC"
    version: str
    size: str
    data_center: str
    client_encryption: str = "false"
    authn_authz: str = "false"
    use_private_broadcast_rpc_address: str = "true"
    default_network: str = "true"
    rack_allocation: dict[str, str]
    firewall_rules: list[FirewallRuleSpec]
    nodes: list[ClusterNode] = Field(default_factory=list, description="Computed")
    vpc_peering_connections: list[VpcPeeringConnection] = Field(default_factory=list)

    @field_validator("nodes", mode="before")
    @classmethod
    def reject_nodes(cls, v: object) -> object:
        """Nodes are reported by the cluster, never declared."""
        if v:
            raise ValueError("nodes is computed and cannot be set")
        return v


RESOURCE = Resource(name="kapacitor_cassandra_cluster", schema=CassandraClusterData)
