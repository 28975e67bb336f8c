# ABOUTME: Resource kinds managed by the Kapacitor provider
# ABOUTME: Each kind pairs a pydantic schema with the shared task lifecycle

"""
Kapacitor provider resources.

    - base.py: TaskResourceData and the create/read/update/delete lifecycle
    - tick_script.py: kapacitor_tick_script
    - cassandra_cluster.py: kapacitor_cassandra_cluster
    - firewall_rule.py: kapacitor_firewall_rule
"""
