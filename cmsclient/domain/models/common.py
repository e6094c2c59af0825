"""Defines common Value Objects used across the client.

These are simple semantic aliases (content type names, identifiers, cache
keys) so signatures say what a string or integer stands for.
"""

from typing import Any, Dict, NewType, Union

# === Content Addressing ===
ContentType = NewType("ContentType", str)      # Collection type, e.g. 'articles'
SingleType = NewType("SingleType", str)        # Single type, e.g. 'footer'
EntityId = NewType("EntityId", int)            # Numeric id assigned by the CMS
DocumentId = NewType("DocumentId", str)        # Stable document identifier
Locale = NewType("Locale", str)                # e.g. 'en', 'es'

# An entity can be addressed by either identifier on the item routes
EntityRef = Union[EntityId, DocumentId, int, str]

# === Caching Context ===
CacheKey = NewType("CacheKey", str)            # Unique key for a cache entry

# === Wire Payloads ===
JSONPayload = Dict[str, Any]                   # Decoded response/request body
