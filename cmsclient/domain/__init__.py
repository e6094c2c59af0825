"""Domain Layer: content entities, query descriptions, errors and ports.

Nothing in this package performs I/O. Infrastructure adapters implement
the interfaces defined in ``cmsclient.domain.interfaces``.
"""
