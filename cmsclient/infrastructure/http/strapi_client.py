"""HTTP request engine for the content API.

Every call goes through ``StrapiClient.request`` which applies, in order:
response cache lookup, quota accounting, the HTTP call, error
normalization and finally the cache write. The convenience methods
(``find``, ``find_one``, ``create``, ...) only vary the HTTP method, the
path and the body.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

import httpx

# Domain Layer Imports
from cmsclient.domain.errors import ApiError, CMSClientError, NetworkError, RequestTimeoutError
from cmsclient.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    CacheHit,
)
from cmsclient.domain.interfaces.cache import CacheService
from cmsclient.domain.interfaces.content_api import ContentAPI, QueryLike
from cmsclient.domain.models.common import CacheKey, ContentType, EntityRef, JSONPayload, SingleType
from cmsclient.domain.models.query import UNSET, Pagination, coerce_query
from cmsclient.domain.models.responses import CollectionResponse, PaginationMeta, SingleResponse

# Infrastructure Layer Imports
from cmsclient.infrastructure.cache.caching_service import ResponseCache
from cmsclient.infrastructure.config.settings import ClientSettings
from cmsclient.infrastructure.http.query_serializer import serialize_query
from cmsclient.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_FIND_ALL_PAGE_SIZE = 100
API_PREFIX = "/api"

WRITE_METHODS = {"POST", "PUT", "PATCH"}


class StrapiClient(ContentAPI):
    """Authenticated, caching, quota-accounted client for the content API."""

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        cache: Optional[CacheService] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
        event_handler: Optional[Callable[[Any], None]] = None,
    ):
        """Initializes the client.

        Args:
            base_url: CMS origin, e.g. ``https://cms.example.com`` (a trailing
                ``/api`` is accepted and not duplicated).
            api_token: Bearer token; requests are anonymous when None.
            cache: Shared response cache. A default ResponseCache is created when None.
            rate_limiter: Shared quota accountant. A default RateLimiter is created when None.
            timeout: Per-request timeout in seconds.
            http_client: Pre-built httpx.AsyncClient (tests inject a MockTransport here).
            event_handler: Optional callable receiving domain events.
        """
        if not base_url:
            raise ValueError("A CMS base URL is required.")
        self.base_url = self._normalize_base_url(base_url)
        self.api_root = f"{self.base_url}{API_PREFIX}"
        self._api_token = api_token
        self.cache = cache if cache is not None else ResponseCache()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.timeout = timeout
        self._event_handler = event_handler
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        logger.info(f"StrapiClient initialized for {self.api_root} (auth={'yes' if api_token else 'no'})")

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        http_client: Optional[httpx.AsyncClient] = None,
        event_handler: Optional[Callable[[Any], None]] = None,
    ) -> "StrapiClient":
        """Builds a client with its own cache and quota from loaded settings."""
        return cls(
            base_url=settings.base_url,
            api_token=settings.api_token,
            cache=ResponseCache.from_settings(settings.cache),
            rate_limiter=RateLimiter(monthly_limit=settings.monthly_limit, event_handler=event_handler),
            timeout=settings.timeout_seconds,
            http_client=http_client,
            event_handler=event_handler,
        )

    @staticmethod
    def _normalize_base_url(base_url: str) -> str:
        url = base_url.rstrip("/")
        if url.endswith(API_PREFIX):
            url = url[: -len(API_PREFIX)]
        return url

    # --- Lifecycle ---

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "StrapiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def clear_cache(self) -> None:
        self.cache.clear()

    # --- Internals ---

    def _dispatch_event(self, event: Any) -> None:
        logger.debug(f"EVENT: {event}")
        if self._event_handler:
            self._event_handler(event)

    def _headers(self, method: str) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        if method in WRITE_METHODS:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _cache_key(method: str, endpoint: str, query_string: str) -> CacheKey:
        return CacheKey(f"{method} {endpoint}?{query_string}")

    @staticmethod
    def _error_details(response: httpx.Response) -> Optional[Any]:
        try:
            body = response.json()
        except ValueError:
            return response.text or None
        if isinstance(body, dict) and "error" in body:
            return body["error"]
        return body

    # --- Request Engine ---

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        query: QueryLike = None,
        body: Optional[JSONPayload] = None,
        use_cache: bool = True,
    ) -> Any:
        """Issues a request against ``/api/{endpoint}``.

        Only GET requests are read from and written to the cache.

        Raises:
            QuotaExceededError: The quota rejected the call; nothing was sent.
            RequestTimeoutError: The call timed out.
            NetworkError: The transport failed before a response arrived.
            ApiError: The CMS answered with a non-2xx status.
        """
        method = method.upper()
        endpoint = endpoint.strip("/")
        query_string = serialize_query(query)
        cacheable = use_cache and method == "GET"
        cache_key = self._cache_key(method, endpoint, query_string)

        # 1. Cache lookup
        if cacheable:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._dispatch_event(CacheHit(cache_key=cache_key))
                return cached

        # 2. Quota accounting
        self.rate_limiter.record_request()

        # 3. Network
        url = f"{self.api_root}/{endpoint}"
        if query_string:
            url = f"{url}?{query_string}"
        self._dispatch_event(ApiCallInitiated(method=method, endpoint=endpoint))
        start_time = time.perf_counter()
        try:
            response = await self._http.request(
                method,
                url,
                json=body,
                headers=self._headers(method),
            )
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: {method} {endpoint}")
            self._dispatch_event(ApiCallFailed(method=method, endpoint=endpoint,
                                               error_type=type(e).__name__, error_message=str(e)))
            raise RequestTimeoutError(f"{method} {endpoint} timed out after {self.timeout}s", e) from e
        except httpx.RequestError as e:
            logger.error(f"Network error calling {method} {endpoint}: {e}")
            self._dispatch_event(ApiCallFailed(method=method, endpoint=endpoint,
                                               error_type=type(e).__name__, error_message=str(e)))
            raise NetworkError(f"{method} {endpoint} failed: {e}", e) from e
        latency_ms = (time.perf_counter() - start_time) * 1000

        # 4. Error normalization
        if not response.is_success:
            error = ApiError(response.status_code, response.reason_phrase, self._error_details(response))
            log = logger.debug if response.status_code == 404 else logger.error
            log(f"{method} {endpoint} returned {response.status_code} {response.reason_phrase}")
            self._dispatch_event(ApiCallFailed(method=method, endpoint=endpoint, error_type="ApiError",
                                               error_message=str(error), status=response.status_code))
            raise error

        # 5. Parse and store
        if response.status_code == 204 or not response.content:
            payload = None
        else:
            try:
                payload = response.json()
            except ValueError as e:
                raise CMSClientError(f"Invalid JSON in response to {method} {endpoint}") from e

        self._dispatch_event(ApiCallSucceeded(method=method, endpoint=endpoint,
                                              status=response.status_code, latency_ms=latency_ms))
        if cacheable and payload is not None:
            self.cache.set(cache_key, payload)
        return payload

    # --- Content-type convenience methods ---

    async def find(self, content_type: ContentType, query: QueryLike = None,
                   use_cache: bool = True) -> CollectionResponse[JSONPayload]:
        payload = await self.request(content_type, "GET", query=query, use_cache=use_cache)
        return CollectionResponse.from_payload(payload)

    async def find_all(self, content_type: ContentType, query: QueryLike = None,
                       page_size: int = DEFAULT_FIND_ALL_PAGE_SIZE) -> CollectionResponse[JSONPayload]:
        """Walks every page of a collection.

        Pages are requested with page/pageSize and a total order (an ``id``
        tie-breaker is appended to the sort) so they are disjoint; entities
        seen on an earlier page are still skipped in case the collection
        changed between requests.
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        base = coerce_query(query)
        sort = self._with_tiebreaker(base.sort)
        seen: Set[Any] = set()
        items: List[JSONPayload] = []
        page = 1
        while True:
            page_query = base.merged(sort=sort, pagination=Pagination(page=page, page_size=page_size))
            response = await self.find(content_type, page_query)
            for item in response.items:
                identity = None
                if isinstance(item, Mapping):
                    identity = item.get("documentId") or item.get("id")
                if identity is not None:
                    if identity in seen:
                        logger.debug(f"Skipping duplicate {content_type} entity {identity} on page {page}")
                        continue
                    seen.add(identity)
                items.append(item)
            page_count = response.pagination.page_count
            if not response.items or page_count is None or page >= page_count:
                break
            page += 1
        logger.debug(f"find_all({content_type}) collected {len(items)} entities over {page} page(s)")
        pagination = PaginationMeta(page=1, page_size=len(items), page_count=1, total=len(items))
        return CollectionResponse(items=items, pagination=pagination, meta={"pagination": {
            "page": 1, "pageSize": len(items), "pageCount": 1, "total": len(items)}})

    @staticmethod
    def _with_tiebreaker(sort: Union[str, List[str], None]) -> List[str]:
        if sort is None or sort is UNSET:
            sort = []
        raw = [sort] if isinstance(sort, str) else list(sort)
        # Absent tokens are dropped by the serializer as well
        tokens = [token for token in raw if token is not None and token is not UNSET]
        if not any(token.split(":")[0] == "id" for token in tokens):
            tokens.append("id:asc")
        return tokens

    async def find_one(self, content_type: ContentType, entity_id: EntityRef, query: QueryLike = None,
                       use_cache: bool = True) -> SingleResponse[JSONPayload]:
        try:
            payload = await self.request(f"{content_type}/{entity_id}", "GET", query=query, use_cache=use_cache)
        except ApiError as e:
            if e.is_not_found:
                return SingleResponse(item=None)
            raise
        return SingleResponse.from_payload(payload)

    async def find_single(self, single_type: SingleType, query: QueryLike = None,
                          use_cache: bool = True) -> SingleResponse[JSONPayload]:
        try:
            payload = await self.request(single_type, "GET", query=query, use_cache=use_cache)
        except ApiError as e:
            if e.is_not_found:
                return SingleResponse(item=None)
            raise
        return SingleResponse.from_payload(payload)

    async def create(self, content_type: ContentType, data: JSONPayload) -> SingleResponse[JSONPayload]:
        payload = await self.request(content_type, "POST", body={"data": data}, use_cache=False)
        return SingleResponse.from_payload(payload)

    async def update(self, content_type: ContentType, entity_id: EntityRef,
                     data: JSONPayload) -> SingleResponse[JSONPayload]:
        payload = await self.request(f"{content_type}/{entity_id}", "PUT", body={"data": data}, use_cache=False)
        return SingleResponse.from_payload(payload)

    async def delete(self, content_type: ContentType, entity_id: EntityRef) -> Optional[JSONPayload]:
        return await self.request(f"{content_type}/{entity_id}", "DELETE", use_cache=False)
