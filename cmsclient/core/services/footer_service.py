"""Footer Service: the ``footer`` single type with its own short-lived cache."""

import logging
import time
from typing import Callable, Optional

from cmsclient.domain.errors import CMSClientError
from cmsclient.domain.interfaces.content_api import ContentAPI
from cmsclient.domain.models.common import CacheKey, Locale, SingleType
from cmsclient.domain.models.content import Footer
from cmsclient.domain.models.query import NestedSpec, QueryDescription
from cmsclient.infrastructure.cache.caching_service import ResponseCache

logger = logging.getLogger(__name__)

FOOTER = SingleType("footer")
FOOTER_TTL_SECONDS = 60.0
# Cache marker for a locale with no footer
_NO_FOOTER = object()
FOOTER_POPULATE = NestedSpec({
    "logo": True,
    "socialLinks": True,
    "menuLinks": True,
    "contactInfo": True,
})


class FooterService:
    """Reads the footer, caching it per locale independently of the client cache."""

    def __init__(self, client: ContentAPI, ttl_seconds: float = FOOTER_TTL_SECONDS,
                 clock: Optional[Callable[[], float]] = None):
        self.client = client
        self._cache = ResponseCache(ttl_seconds=ttl_seconds, clock=clock or time.monotonic)

    @staticmethod
    def _cache_key(locale: Optional[Locale]) -> CacheKey:
        return CacheKey(f"footer_{locale or 'default'}")

    async def get_footer(self, locale: Optional[Locale] = None) -> Optional[Footer]:
        """The footer for ``locale`` (default locale when None).

        Returns None when the footer is missing or the CMS call fails. A
        missing footer is cached like a found one; a failure is logged, not
        raised, and nothing is cached for it.
        """
        key = self._cache_key(locale)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Footer cache hit: {key}")
            return None if cached is _NO_FOOTER else cached

        query = QueryDescription(populate=FOOTER_POPULATE, locale=locale)
        try:
            response = await self.client.find_single(FOOTER, query)
        except CMSClientError as e:
            logger.error(f"Error fetching footer: {e}")
            return None

        if response.item is None:
            logger.debug(f"No footer configured for locale: {locale or 'default'}")
            self._cache.set(key, _NO_FOOTER)
            return None
        footer = Footer.from_dict(response.item)
        self._cache.set(key, footer)
        return footer

    def clear_cache(self) -> None:
        self._cache.clear()
