# ABOUTME: Utilities package initialization for the Kapacitor provider
# ABOUTME: Contains the API client, identifier codec, safety and logging helpers

"""
Kapacitor Provider Utilities Package

Shared utilities:
    - client.py: Kapacitor task API client
    - identifiers.py: Database/retention-policy identifier codec
    - safety.py: Read-only mode and delete confirmation guards
    - logging.py: Structured logging with correlation IDs
"""
