"""Interface for the content API request engine.

The typed content services are written against this contract so they can
be exercised with a fake engine and so the HTTP layer can be swapped.
"""

import abc
from typing import Any, Mapping, Optional, Union

from ..models.common import ContentType, EntityRef, JSONPayload, SingleType
from ..models.query import QueryDescription
from ..models.responses import CollectionResponse, SingleResponse

QueryLike = Union[QueryDescription, Mapping[str, Any], None]


class ContentAPI(abc.ABC):
    """Abstract Base Class for content API access."""

    @abc.abstractmethod
    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        query: QueryLike = None,
        body: Optional[JSONPayload] = None,
        use_cache: bool = True,
    ) -> Any:
        """Issues a request and returns the decoded response body.

        Raises:
            QuotaExceededError: The quota rejected the call before dispatch.
            NetworkError: The transport failed.
            ApiError: The CMS answered with a non-2xx status.
        """
        pass

    @abc.abstractmethod
    async def find(self, content_type: ContentType, query: QueryLike = None,
                   use_cache: bool = True) -> CollectionResponse[JSONPayload]:
        """Lists entities of a collection type."""
        pass

    @abc.abstractmethod
    async def find_all(self, content_type: ContentType, query: QueryLike = None,
                       page_size: int = 100) -> CollectionResponse[JSONPayload]:
        """Lists every matching entity by walking disjoint pages."""
        pass

    @abc.abstractmethod
    async def find_one(self, content_type: ContentType, entity_id: EntityRef, query: QueryLike = None,
                       use_cache: bool = True) -> SingleResponse[JSONPayload]:
        """Fetches one entity; ``item`` is None when it does not exist."""
        pass

    @abc.abstractmethod
    async def find_single(self, single_type: SingleType, query: QueryLike = None,
                          use_cache: bool = True) -> SingleResponse[JSONPayload]:
        """Fetches a single-type entity; ``item`` is None when it is not set up."""
        pass

    @abc.abstractmethod
    async def create(self, content_type: ContentType, data: JSONPayload) -> SingleResponse[JSONPayload]:
        pass

    @abc.abstractmethod
    async def update(self, content_type: ContentType, entity_id: EntityRef,
                     data: JSONPayload) -> SingleResponse[JSONPayload]:
        pass

    @abc.abstractmethod
    async def delete(self, content_type: ContentType, entity_id: EntityRef) -> Optional[JSONPayload]:
        pass
