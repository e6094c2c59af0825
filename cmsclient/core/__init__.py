"""Core Application Layer: the typed content services and the CLI command handler.

Services depend only on the domain interfaces; the infrastructure layer
supplies the concrete content API client.
"""
