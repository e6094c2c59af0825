"""Response envelopes returned by the request engine and the services.

A collection read always yields ``CollectionResponse``; a single-entity
read always yields ``SingleResponse``. The two are never interchanged by
the same operation.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from .common import JSONPayload

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class PaginationMeta:
    """``meta.pagination`` as reported by the CMS."""
    page: Optional[int] = None
    page_size: Optional[int] = None
    page_count: Optional[int] = None
    total: Optional[int] = None
    start: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "PaginationMeta":
        raw = raw or {}
        return cls(
            page=raw.get("page"),
            page_size=raw.get("pageSize"),
            page_count=raw.get("pageCount"),
            total=raw.get("total"),
            start=raw.get("start"),
            limit=raw.get("limit"),
        )


@dataclass
class CollectionResponse(Generic[T]):
    """``{data: [...], meta: {pagination: ...}}``."""
    items: List[T] = field(default_factory=list)
    pagination: PaginationMeta = field(default_factory=PaginationMeta)
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Optional[JSONPayload]) -> "CollectionResponse[JSONPayload]":
        payload = payload or {}
        data = payload.get("data") or []
        if not isinstance(data, list):
            raise ValueError("Expected a list under 'data' for a collection response")
        meta = payload.get("meta") or {}
        return cls(items=list(data), pagination=PaginationMeta.from_dict(meta.get("pagination")), meta=meta)

    def map(self, convert: Callable[[T], Optional[U]]) -> "CollectionResponse[U]":
        """Converts every item, dropping the ones ``convert`` rejects with ``None``."""
        converted = [item for item in (convert(i) for i in self.items) if item is not None]
        return CollectionResponse(items=converted, pagination=self.pagination, meta=self.meta)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass
class SingleResponse(Generic[T]):
    """``{data: {...}, meta: {...}}``; ``item`` is ``None`` when nothing matched."""
    item: Optional[T] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Optional[JSONPayload]) -> "SingleResponse[JSONPayload]":
        payload = payload or {}
        data = payload.get("data")
        if isinstance(data, list):
            raise ValueError("Expected a single object under 'data' for a single response")
        return cls(item=data, meta=payload.get("meta") or {})

    def map(self, convert: Callable[[T], Optional[U]]) -> "SingleResponse[U]":
        item = convert(self.item) if self.item is not None else None
        return SingleResponse(item=item, meta=self.meta)


@dataclass(frozen=True)
class ArchiveEntry:
    """Number of published articles in one calendar month."""
    month: str          # 'YYYY-MM'
    year: int
    month_num: int
    count: int
