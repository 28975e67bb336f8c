# ABOUTME: Provider configuration and resource registry
# ABOUTME: Builds a verified Kapacitor client from settings and lists resource kinds

"""
Provider entry points.

configure() turns ProviderSettings into a connected, verified client:

    1. Validate credentials      -> "error validating credentials: ..."
    2. Open the HTTP client      -> "error creating client: ..."
    3. Ping the server           -> "error pinging server: ..."

Each failure is raised as ProviderConfigurationError with the prefix shown,
chained to the original exception.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from kapacitor_provider.config import CredentialsError
from kapacitor_provider.resources import cassandra_cluster, firewall_rule, tick_script
from kapacitor_provider.utils.client import KapacitorClient, KapacitorError

if TYPE_CHECKING:
    from kapacitor_provider.config import ProviderSettings
    from kapacitor_provider.resources.base import Resource

logger = structlog.get_logger(__name__)

RESOURCES: dict[str, Resource] = {
    resource.name: resource
    for resource in (
        tick_script.RESOURCE,
        cassandra_cluster.RESOURCE,
        firewall_rule.RESOURCE,
    )
}


class ProviderConfigurationError(Exception):
    """Raised when the provider cannot produce a working client."""


def get_resource(kind: str) -> Resource:
    """
    Look up a resource kind by name.

    Raises:
        ValueError: If the kind is not registered
    """
    if kind not in RESOURCES:
        raise ValueError(f"Unknown resource kind '{kind}'. Available: {sorted(RESOURCES)}")
    return RESOURCES[kind]


async def configure(settings: ProviderSettings) -> KapacitorClient:
    """
    Build, open and verify a client for the configured server.

    The returned client is already entered; close it with
    ``await client.__aexit__(None, None, None)``.

    Raises:
        ProviderConfigurationError: If credentials, client creation or ping fail
    """
    try:
        credentials = settings.credentials
    except CredentialsError as e:
        raise ProviderConfigurationError(f"error validating credentials: {e}") from e

    client = KapacitorClient(
        url=settings.url,
        credentials=credentials,
        timeout=settings.timeout,
        insecure_skip_verify=settings.insecure_skip_verify,
    )

    try:
        await client.__aenter__()
    except (httpx.HTTPError, ValueError) as e:
        raise ProviderConfigurationError(f"error creating client: {e}") from e

    try:
        elapsed, version = await client.ping()
    except (KapacitorError, httpx.HTTPError) as e:
        await client.__aexit__(None, None, None)
        raise ProviderConfigurationError(f"error pinging server: {e}") from e

    logger.info("Connected to Kapacitor", url=settings.url, version=version, elapsed=elapsed)
    return client
