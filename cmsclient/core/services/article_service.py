"""Article Service: typed article reads, derived data and comment writes.

Wraps the content API with the default query descriptions the site needs
(population graphs, sort orders, projections) and converts raw payloads
into ``Article`` entities.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

# Domain Layer Imports
from cmsclient.domain.interfaces.content_api import ContentAPI
from cmsclient.domain.models.common import ContentType, EntityRef
from cmsclient.domain.models.content import Article, Comment
from cmsclient.domain.models.query import (
    FieldList,
    NestedSpec,
    Pagination,
    PopulateSpec,
    QueryDescription,
    SortSpec,
)
from cmsclient.domain.models.responses import ArchiveEntry, CollectionResponse, SingleResponse

logger = logging.getLogger(__name__)

ARTICLES = ContentType("articles")
COMMENTS = ContentType("comments")
PUBLISHED = "published"
NEWEST_FIRST = ["publishedAt:desc"]

# Default population for article lists
LIST_POPULATE = NestedSpec({
    "author": PopulateSpec(populate=FieldList(["avatar"])),
    "category": True,
    "cover": True,
    "seo": True,
})

# Full graph for the article page
DETAIL_POPULATE = NestedSpec({
    "author": PopulateSpec(populate=FieldList(["avatar"])),
    "category": True,
    "cover": True,
    "tags": True,
    "seo": True,
    "relatedArticles": PopulateSpec(populate=FieldList(["cover", "author", "category"])),
})

FEATURED_FIELDS = ["title", "description", "slug", "publishedAt"]
FEATURED_POPULATE = NestedSpec({
    "author": PopulateSpec(fields=["name"]),
    "category": PopulateSpec(fields=["name"]),
    "cover": PopulateSpec(fields=["url", "alternativeText", "width", "height"]),
})

BackgroundErrorHandler = Callable[[BaseException, Article], None]


def _log_background_error(error: BaseException, article: Article) -> None:
    logger.error(f"Failed to increment view count for article {article.ref}: {error}")


class ArticleService:
    """Typed operations over the ``articles`` collection."""

    def __init__(self, client: ContentAPI, on_background_error: Optional[BackgroundErrorHandler] = None):
        """Initializes the ArticleService.

        Args:
            client: Content API engine shared with the other services.
            on_background_error: Receives failures of fire-and-forget side
                effects (view counting). Defaults to logging them.
        """
        self.client = client
        self.on_background_error = on_background_error or _log_background_error
        self._background_tasks: Set["asyncio.Task[None]"] = set()

    # --- Listing ---

    async def get_articles(
        self,
        page: int = 1,
        page_size: int = 10,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        populate: Any = None,
    ) -> CollectionResponse[Article]:
        """Paginated articles, newest first, with authors, categories and covers."""
        query = QueryDescription(
            filters=filters,
            sort=sort or NEWEST_FIRST,
            pagination=Pagination(page=page, page_size=page_size),
            populate=populate or LIST_POPULATE,
        )
        response = await self.client.find(ARTICLES, query)
        return response.map(Article.from_dict)

    async def get_articles_by_category(self, category_slug: str, page: int = 1,
                                       page_size: int = 10) -> CollectionResponse[Article]:
        return await self.get_articles(page=page, page_size=page_size,
                                       filters={"category": {"slug": {"$eq": category_slug}}})

    async def get_articles_by_author(self, author_slug: str, page: int = 1,
                                     page_size: int = 10) -> CollectionResponse[Article]:
        return await self.get_articles(page=page, page_size=page_size,
                                       filters={"author": {"slug": {"$eq": author_slug}}})

    async def get_articles_by_tag(self, tag_slug: str, page: int = 1,
                                  page_size: int = 10) -> CollectionResponse[Article]:
        return await self.get_articles(page=page, page_size=page_size,
                                       filters={"tags": {"slug": {"$in": [tag_slug]}}})

    async def search_articles(self, text: str, page: int = 1, page_size: int = 10) -> CollectionResponse[Article]:
        """Case-insensitive search over title, description and content."""
        filters = {"$or": [
            {"title": {"$containsi": text}},
            {"description": {"$containsi": text}},
            {"content": {"$containsi": text}},
        ]}
        return await self.get_articles(page=page, page_size=page_size, filters=filters)

    async def get_featured_articles(self, limit: int = 6) -> CollectionResponse[Article]:
        """Featured articles for the home page, projected to card fields."""
        query = QueryDescription(
            filters={"featured": {"$eq": True}},
            sort=NEWEST_FIRST,
            pagination=Pagination(page_size=limit),
            populate=FEATURED_POPULATE,
            fields=FEATURED_FIELDS,
        )
        response = await self.client.find(ARTICLES, query)
        return response.map(Article.from_dict)

    async def get_trending_articles(self, limit: int = 5, days: int = 7,
                                    now: Optional[datetime] = None) -> CollectionResponse[Article]:
        """Most viewed articles published within the last ``days`` days."""
        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=days)).replace(microsecond=0)
        query = QueryDescription(
            filters={
                "status": {"$eq": PUBLISHED},
                "publishedAt": {"$gte": since.isoformat().replace("+00:00", "Z")},
            },
            sort=["viewCount:desc", "publishedAt:desc"],
            pagination=Pagination(limit=limit),
            populate=FieldList(["author", "cover"]),
        )
        response = await self.client.find(ARTICLES, query)
        return response.map(Article.from_dict)

    # --- Single article ---

    async def get_article_by_slug(self, slug: str) -> Optional[Article]:
        """The published article with this slug, fully populated, or None.

        A hit schedules a view count increment in the background; the
        increment never delays or fails this read.
        """
        query = QueryDescription(
            filters={"slug": {"$eq": slug}, "status": {"$eq": PUBLISHED}},
            populate=DETAIL_POPULATE,
        )
        response = await self.client.find(ARTICLES, query)
        if not response.items:
            logger.debug(f"No published article with slug '{slug}'")
            return None
        article = Article.from_dict(response.items[0])
        if article is not None:
            self._spawn_view_increment(article)
        return article

    def _spawn_view_increment(self, article: Article) -> None:
        task = asyncio.create_task(self._increment_view_count(article))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _increment_view_count(self, article: Article) -> None:
        try:
            # Fresh read so a cached copy does not undo other increments
            current = await self.client.find_one(ARTICLES, article.ref, use_cache=False)
            source = Article.from_dict(current.item) if current.item is not None else article
            await self.client.update(ARTICLES, article.ref, {"viewCount": (source.view_count or 0) + 1})
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.on_background_error(e, article)

    async def drain_background_tasks(self) -> None:
        """Waits for outstanding view increments (shutdown and tests)."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    @property
    def pending_background_tasks(self) -> int:
        return len(self._background_tasks)

    async def get_related_articles(self, article_id: EntityRef, limit: int = 4) -> CollectionResponse[Article]:
        """Other published articles sharing a category or tag with ``article_id``."""
        source = await self.client.find_one(
            ARTICLES, article_id, QueryDescription(populate=FieldList(["category", "categories", "tags"]))
        )
        article = Article.from_dict(source.item) if source.item is not None else None
        if article is None:
            return CollectionResponse()

        category_ids = article.category_ids
        tag_ids = article.tag_ids
        shared: List[Dict[str, Any]] = []
        if category_ids:
            shared.append({"category": {"id": {"$in": category_ids}}})
        if tag_ids:
            shared.append({"tags": {"id": {"$in": tag_ids}}})
        if not shared:
            logger.debug(f"Article {article_id} has no categories or tags; no related articles")
            return CollectionResponse()

        query = QueryDescription(
            filters={"$and": [
                {"id": {"$ne": article.id}},
                {"status": {"$eq": PUBLISHED}},
                {"$or": shared},
            ]},
            sort=NEWEST_FIRST,
            pagination=Pagination(limit=limit),
            populate=FieldList(["author", "cover", "category"]),
        )
        response = await self.client.find(ARTICLES, query)
        return response.map(Article.from_dict)

    # --- Derived data ---

    async def get_archives(self) -> List[ArchiveEntry]:
        """Published article counts per month, most recent month first."""
        query = QueryDescription(
            filters={"status": {"$eq": PUBLISHED}},
            fields=["publishedAt"],
            sort=NEWEST_FIRST,
        )
        response = await self.client.find_all(ARTICLES, query)

        counts: Counter = Counter()
        for raw in response.items:
            article = Article.from_dict(raw)
            published = article.published_datetime if article is not None else None
            if published is None:
                logger.debug(f"Skipping article without a usable publishedAt: {raw!r}")
                continue
            counts[f"{published.year:04d}-{published.month:02d}"] += 1

        return [
            ArchiveEntry(month=month, year=int(month[:4]), month_num=int(month[5:]), count=count)
            for month, count in sorted(counts.items(), reverse=True)
        ]

    # --- Writes ---

    async def create_comment(
        self,
        article_id: EntityRef,
        content: str,
        author_name: str,
        author_email: str,
        parent_comment_id: Optional[EntityRef] = None,
    ) -> SingleResponse[Comment]:
        """Posts a comment awaiting moderation."""
        data: Dict[str, Any] = {
            "content": content,
            "authorName": author_name,
            "authorEmail": author_email,
            "article": article_id,
            "approved": False,
            "publishedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        if parent_comment_id is not None:
            data["parentComment"] = parent_comment_id
        response = await self.client.create(COMMENTS, data)
        return response.map(Comment.from_dict)
