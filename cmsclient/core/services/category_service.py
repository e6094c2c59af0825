"""Category Service: typed reads and admin writes for the ``categories`` collection."""

import logging
from typing import Any, Optional

from cmsclient.domain.interfaces.content_api import ContentAPI
from cmsclient.domain.models.common import ContentType, EntityRef, JSONPayload
from cmsclient.domain.models.content import Category
from cmsclient.domain.models.query import NestedSpec, Pagination, PopulateSpec, QueryDescription, SortSpec
from cmsclient.domain.models.responses import CollectionResponse, SingleResponse

logger = logging.getLogger(__name__)

CATEGORIES = ContentType("categories")
BY_NAME = ["name:asc"]
WITH_IMAGE = NestedSpec({"image": True})


class CategoryService:
    """Typed operations over the ``categories`` collection.

    Reads go through the client's shared response cache.
    """

    def __init__(self, client: ContentAPI):
        self.client = client

    async def get_all(self, sort: Optional[SortSpec] = None,
                      pagination: Optional[Any] = None) -> CollectionResponse[Category]:
        """All categories by name (first 100 unless ``pagination`` says otherwise)."""
        query = QueryDescription(
            sort=sort or BY_NAME,
            pagination=pagination or Pagination(limit=100),
            populate=WITH_IMAGE,
        )
        response = await self.client.find(CATEGORIES, query)
        return response.map(Category.from_dict)

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        query = QueryDescription(filters={"slug": {"$eq": slug}}, populate=WITH_IMAGE)
        response = await self.client.find(CATEGORIES, query)
        if not response.items:
            logger.debug(f"No category with slug '{slug}'")
            return None
        return Category.from_dict(response.items[0])

    async def get_categories_with_article_count(self) -> CollectionResponse[Category]:
        """Categories with their article ids populated; see ``Category.article_count``."""
        query = QueryDescription(
            populate=NestedSpec({
                "articles": PopulateSpec(fields=["id"]),
                "image": True,
            }),
            sort=BY_NAME,
        )
        response = await self.client.find(CATEGORIES, query)
        return response.map(Category.from_dict)

    async def get_featured_categories(self, limit: int = 6) -> CollectionResponse[Category]:
        query = QueryDescription(sort=BY_NAME, pagination=Pagination(limit=limit), populate=WITH_IMAGE)
        response = await self.client.find(CATEGORIES, query)
        return response.map(Category.from_dict)

    # --- Writes ---

    async def create(self, data: JSONPayload) -> SingleResponse[Category]:
        response = await self.client.create(CATEGORIES, data)
        return response.map(Category.from_dict)

    async def update(self, category_id: EntityRef, data: JSONPayload) -> SingleResponse[Category]:
        response = await self.client.update(CATEGORIES, category_id, data)
        return response.map(Category.from_dict)

    async def delete(self, category_id: EntityRef) -> Optional[JSONPayload]:
        return await self.client.delete(CATEGORIES, category_id)
