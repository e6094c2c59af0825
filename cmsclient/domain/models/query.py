"""Structured query descriptions for content API requests.

A ``QueryDescription`` says what to fetch (filters, sort, pagination,
population, field projection) without saying how it is encoded on the
wire. The serializer in ``cmsclient.infrastructure.http.query_serializer``
turns it into a query string.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .common import Locale


class _Unset:
    """Marker for a value that should be left out of the query entirely.

    ``None`` is a real value (an explicit null); only ``UNSET`` is skipped.
    """

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

SortSpec = Union[str, Sequence[str]]
FilterSpec = Mapping[str, Any]


@dataclass(frozen=True)
class Pagination:
    """Page-based (page/page_size) or offset-based (start/limit) pagination.

    When both forms are given, page/page_size wins.
    """
    page: Optional[int] = None
    page_size: Optional[int] = None
    start: Optional[int] = None
    limit: Optional[int] = None

    @property
    def is_page_based(self) -> bool:
        return self.page is not None or self.page_size is not None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Pagination":
        return cls(
            page=data.get("page"),
            page_size=data.get("pageSize", data.get("page_size")),
            start=data.get("start"),
            limit=data.get("limit"),
        )


# --- Population variants ---

@dataclass(frozen=True)
class Wildcard:
    """Populate every relation one level deep (``populate=*``)."""


@dataclass(frozen=True)
class FieldList:
    """Populate the named relations with all of their attributes."""
    names: tuple

    def __init__(self, names: Sequence[str]):
        object.__setattr__(self, "names", tuple(names))


@dataclass(frozen=True)
class PopulateSpec:
    """Options for a single populated relation inside a ``NestedSpec``."""
    fields: Optional[Sequence[str]] = None
    sort: Optional[SortSpec] = None
    filters: Optional[FilterSpec] = None
    populate: Optional["Populate"] = None

    def __post_init__(self):
        object.__setattr__(self, "populate", as_populate(self.populate))


@dataclass(frozen=True)
class NestedSpec:
    """Relation name -> ``True`` or ``PopulateSpec``, in insertion order."""
    entries: Dict[str, Union[bool, PopulateSpec]] = field(default_factory=dict)


Populate = Union[Wildcard, FieldList, NestedSpec]


def as_populate(value: Any) -> Optional[Populate]:
    """Converts the loose CMS populate shape into a typed variant.

    Accepts ``"*"``, a relation name, a list of names, or a dict whose values
    are ``True`` or option dicts (``fields``/``sort``/``filters``/``populate``).
    Already-typed variants pass through unchanged.
    """
    if value is None or value is UNSET:
        return None
    if isinstance(value, (Wildcard, FieldList, NestedSpec)):
        return value
    if isinstance(value, str):
        return Wildcard() if value == "*" else FieldList([value])
    if isinstance(value, Mapping):
        entries: Dict[str, Union[bool, PopulateSpec]] = {}
        for name, options in value.items():
            if options is UNSET:
                continue
            if isinstance(options, PopulateSpec):
                entries[name] = options
            elif isinstance(options, Mapping):
                entries[name] = PopulateSpec(
                    fields=options.get("fields"),
                    sort=options.get("sort"),
                    filters=options.get("filters"),
                    populate=as_populate(options.get("populate")),
                )
            else:
                entries[name] = bool(options)
        return NestedSpec(entries)
    if isinstance(value, Sequence):
        return FieldList([name for name in value if name is not UNSET])
    raise TypeError(f"Unsupported populate value: {value!r}")


@dataclass(frozen=True)
class QueryDescription:
    """Everything that shapes a content API read.

    Sections are serialized in field declaration order.
    """
    filters: Optional[FilterSpec] = None
    sort: Optional[SortSpec] = None
    pagination: Optional[Pagination] = None
    populate: Optional[Populate] = None
    fields: Optional[Sequence[str]] = None
    locale: Optional[Locale] = None
    publication_state: Optional[str] = None
    status: Optional[str] = None

    def __post_init__(self):
        # Loose dict/list forms are converted once, here
        if isinstance(self.pagination, Mapping):
            object.__setattr__(self, "pagination", Pagination.from_mapping(self.pagination))
        object.__setattr__(self, "populate", as_populate(self.populate))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "QueryDescription":
        """Builds a description from the camelCase dict form used by the CMS."""
        if not data:
            return cls()
        unknown = set(data) - {
            "filters", "sort", "pagination", "populate", "fields",
            "locale", "publicationState", "publication_state", "status",
        }
        if unknown:
            raise ValueError(f"Unknown query keys: {sorted(unknown)}")
        return cls(
            filters=data.get("filters"),
            sort=data.get("sort"),
            pagination=data.get("pagination"),
            populate=data.get("populate"),
            fields=data.get("fields"),
            locale=data.get("locale"),
            publication_state=data.get("publicationState", data.get("publication_state")),
            status=data.get("status"),
        )

    def merged(self, **overrides: Any) -> "QueryDescription":
        """Returns a copy with the given sections replaced (``None`` keeps the current value)."""
        values = {name: getattr(self, name) for name in self.__dataclass_fields__}
        for name, value in overrides.items():
            if name not in values:
                raise TypeError(f"Unknown query section: {name}")
            if value is not None:
                values[name] = value
        return QueryDescription(**values)


def coerce_query(query: Union[QueryDescription, Mapping[str, Any], None]) -> QueryDescription:
    """Accepts a description, a CMS-style dict, or nothing."""
    if isinstance(query, QueryDescription):
        return query
    return QueryDescription.from_mapping(query)
