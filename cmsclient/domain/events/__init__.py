"""Domain Events emitted by the request engine and quota accounting."""
