"""Response Cache Implementation.

Provides the in-memory, time- and size-bounded implementation of the
CacheService interface.
Bounded Context: Cache Management
"""
