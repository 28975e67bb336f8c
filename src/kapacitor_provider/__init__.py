# ABOUTME: Kapacitor provider package initialization
# ABOUTME: Exposes version information

"""
Kapacitor provider - declarative reconciliation of Kapacitor tasks.

Resource definitions (tick scripts, clusters, firewall rules) are stored as
Kapacitor tasks and reconciled through the task API's create, read, update
and delete calls.

Package layout:

kapacitor_provider/
├── __init__.py          <- Package entry point
├── config.py            <- Settings and credentials (env vars)
├── provider.py          <- configure() and the resource registry
├── server.py            <- MCP host exposing the lifecycle as tools
├── resources/
│   ├── base.py          <- Shared task-backed lifecycle
│   ├── tick_script.py
│   ├── cassandra_cluster.py
│   └── firewall_rule.py
└── utils/
    ├── client.py        <- HTTP client for the Kapacitor task API
    ├── identifiers.py   <- "db"."rp" identifier codec
    ├── logging.py       <- Structured logging with audit trails
    └── safety.py        <- Read-only mode and delete confirmation
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
