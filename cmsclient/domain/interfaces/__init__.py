"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. Services depend on these interfaces, not on concrete
implementations.
"""
