"""Query parameter serializer for the content API.

Turns a ``QueryDescription`` into the bracket-encoded query string the CMS
understands, e.g.::

    filters[slug][$eq]=my-post&sort=publishedAt:desc
    &pagination[page]=1&pagination[pageSize]=10
    &populate[author][fields][0]=name

Output is deterministic: sections come out in a fixed order and mapping
keys in their insertion order, so the string is usable as a cache key.
``UNSET`` values are skipped; ``None`` is sent as an empty (null) value.
"""

import logging
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from cmsclient.domain.models.query import (
    UNSET,
    FieldList,
    NestedSpec,
    Pagination,
    Populate,
    PopulateSpec,
    QueryDescription,
    SortSpec,
    Wildcard,
    coerce_query,
)

logger = logging.getLogger(__name__)

QueryPair = Tuple[str, str]

# Characters left readable in keys and values
_KEY_SAFE = "[]$_.-"
_VALUE_SAFE = "*:,_.-"


def serialize_query(query: Union[QueryDescription, Mapping[str, Any], None]) -> str:
    """Serializes a query description into a URL query string (no leading ``?``)."""
    pairs = build_query_pairs(coerce_query(query))
    return "&".join(
        f"{quote(key, safe=_KEY_SAFE)}={quote(value, safe=_VALUE_SAFE)}" for key, value in pairs
    )


def build_query_pairs(query: QueryDescription) -> List[QueryPair]:
    """Flattens a description into ordered (key, value) pairs, unencoded."""
    pairs: List[QueryPair] = []
    if _present(query.filters):
        _encode_value("filters", query.filters, pairs)
    if _present(query.sort):
        _encode_sort("sort", query.sort, pairs)
    if _present(query.pagination):
        _encode_pagination("pagination", query.pagination, pairs)
    if _present(query.populate):
        _encode_populate("populate", query.populate, pairs)
    if _present(query.fields):
        _encode_list("fields", query.fields, pairs)
    for key, value in (
        ("locale", query.locale),
        ("publicationState", query.publication_state),
        ("status", query.status),
    ):
        if _present(value):
            pairs.append((key, _scalar(value)))
    return pairs


def _present(value: Any) -> bool:
    return value is not None and value is not UNSET


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _scalar(value: Any) -> str:
    # The bracket format has no null literal; None and "" share the wire form
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _encode_value(prefix: str, value: Any, pairs: List[QueryPair]) -> None:
    """Recursive bracket encoding for filters and other free-form mappings."""
    if value is UNSET:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            _encode_value(f"{prefix}[{key}]", item, pairs)
    elif _is_sequence(value):
        _encode_list(prefix, value, pairs)
    else:
        pairs.append((prefix, _scalar(value)))


def _encode_list(prefix: str, values: Sequence[Any], pairs: List[QueryPair]) -> None:
    # Indices are assigned after UNSET items are dropped
    kept = [item for item in values if item is not UNSET]
    for index, item in enumerate(kept):
        _encode_value(f"{prefix}[{index}]", item, pairs)


def _encode_sort(prefix: str, sort: SortSpec, pairs: List[QueryPair]) -> None:
    if isinstance(sort, str):
        pairs.append((prefix, sort))
        return
    tokens = [token for token in sort if token is not UNSET and token is not None]
    if tokens:
        pairs.append((prefix, ",".join(tokens)))


def _encode_pagination(prefix: str, pagination: Pagination, pairs: List[QueryPair]) -> None:
    if pagination.is_page_based:
        if pagination.start is not None or pagination.limit is not None:
            logger.debug("Both page and offset pagination given; using page/pageSize")
        entries = (("page", pagination.page), ("pageSize", pagination.page_size))
    else:
        entries = (("start", pagination.start), ("limit", pagination.limit))
    for key, value in entries:
        if value is not None:
            pairs.append((f"{prefix}[{key}]", _scalar(value)))


def _encode_populate(prefix: str, populate: Populate, pairs: List[QueryPair]) -> None:
    if isinstance(populate, Wildcard):
        pairs.append((prefix, "*"))
    elif isinstance(populate, FieldList):
        _encode_list(prefix, populate.names, pairs)
    elif isinstance(populate, NestedSpec):
        for name, entry in populate.entries.items():
            _encode_populate_entry(f"{prefix}[{name}]", entry, pairs)
    else:
        raise TypeError(f"Unsupported populate variant: {type(populate).__name__}")


def _encode_populate_entry(prefix: str, entry: Union[bool, PopulateSpec], pairs: List[QueryPair]) -> None:
    if isinstance(entry, bool):
        pairs.append((prefix, _scalar(entry)))
        return
    if not isinstance(entry, PopulateSpec):
        raise TypeError(f"Unsupported populate entry: {entry!r}")
    emitted = len(pairs)
    if _present(entry.fields):
        _encode_list(f"{prefix}[fields]", entry.fields, pairs)
    if _present(entry.sort):
        _encode_sort(f"{prefix}[sort]", entry.sort, pairs)
    if _present(entry.filters):
        _encode_value(f"{prefix}[filters]", entry.filters, pairs)
    if _present(entry.populate):
        _encode_populate(f"{prefix}[populate]", entry.populate, pairs)
    if len(pairs) == emitted:
        # An empty spec still means "populate this relation"
        pairs.append((prefix, "true"))


def describe_query(query: Optional[QueryDescription]) -> str:
    """Human-readable, unencoded form of a query (for logs and the CLI)."""
    if query is None:
        return ""
    return "&".join(f"{key}={value}" for key, value in build_query_pairs(query))
