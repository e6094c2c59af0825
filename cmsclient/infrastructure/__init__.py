"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the client to the outside world (HTTP, environment, console)
by implementing the interfaces defined in the domain layer.
"""
