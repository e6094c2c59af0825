"""Domain Events related to content API calls.

Events are plain records handed to an optional ``event_handler`` callable
on the client; nothing in the client depends on them being consumed.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a request is about to leave the process."""
    method: str
    endpoint: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when the CMS answered with a 2xx status."""
    method: str
    endpoint: str
    status: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a request failed (transport or non-2xx)."""
    method: str
    endpoint: str
    error_type: str
    error_message: str
    status: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheHit(DomainEvent):
    """Event triggered when a read was answered from the response cache."""
    cache_key: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class QuotaThresholdReached(DomainEvent):
    """Event triggered for each accounted request at or above the warning threshold."""
    count: int
    limit: int
    timestamp: float = field(default_factory=time.time)
