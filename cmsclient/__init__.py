"""cmsclient: async client for a headless CMS content API.

Exposes the request engine, the typed content services and the
configuration helpers needed to wire them together.
"""

from cmsclient.domain.errors import (
    ApiError,
    CMSClientError,
    ConfigurationError,
    NetworkError,
    QuotaExceededError,
    RequestTimeoutError,
)
from cmsclient.domain.models.query import (
    UNSET,
    FieldList,
    NestedSpec,
    Pagination,
    PopulateSpec,
    QueryDescription,
    Wildcard,
)
from cmsclient.infrastructure.http.query_serializer import serialize_query
from cmsclient.infrastructure.http.strapi_client import StrapiClient
from cmsclient.core.services.article_service import ArticleService
from cmsclient.core.services.category_service import CategoryService
from cmsclient.core.services.footer_service import FooterService

__version__ = "0.3.0"

__all__ = [
    "ApiError",
    "ArticleService",
    "CMSClientError",
    "CategoryService",
    "ConfigurationError",
    "FieldList",
    "FooterService",
    "NestedSpec",
    "NetworkError",
    "Pagination",
    "PopulateSpec",
    "QueryDescription",
    "QuotaExceededError",
    "RequestTimeoutError",
    "StrapiClient",
    "UNSET",
    "Wildcard",
    "serialize_query",
]
