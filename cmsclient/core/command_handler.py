"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work
to the content services and renders the results through the UserInterface.
Client errors are reported to the user, never raised to Typer.
"""

import json
import logging
from typing import Any, List, Optional, Sequence

# Core Services Imports
from cmsclient.core.services.article_service import ArticleService
from cmsclient.core.services.category_service import CategoryService
from cmsclient.core.services.footer_service import FooterService

# Domain Layer Imports
from cmsclient.domain.errors import CMSClientError
from cmsclient.domain.interfaces.content_api import ContentAPI
from cmsclient.domain.interfaces.user_interface import UserInterface
from cmsclient.domain.models.content import Article
from cmsclient.domain.models.query import QueryDescription

# Infrastructure Layer Imports
from cmsclient.infrastructure.http.query_serializer import serialize_query

logger = logging.getLogger(__name__)

ARTICLE_COLUMNS = ["ID", "Title", "Slug", "Published", "Category"]


def _article_rows(articles: Sequence[Article]) -> List[List[Any]]:
    return [
        [a.id, a.title, a.slug, a.published_at, a.category.name if a.category else None]
        for a in articles
    ]


def _parse_query(raw: Optional[str]) -> QueryDescription:
    """Parses a JSON query description given on the command line."""
    if not raw:
        return QueryDescription()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Query is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Query must be a JSON object")
    return QueryDescription.from_mapping(data)


def show_serialized_query(ui: UserInterface, query_json: str) -> None:
    """Prints the query string a JSON query description serializes to."""
    try:
        query_string = serialize_query(_parse_query(query_json))
    except (ValueError, TypeError) as e:
        ui.display_error(f"Invalid query: {e}")
        return
    ui.display_output(query_string or "(empty query)", title="Query string")


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        client: ContentAPI,
        article_service: ArticleService,
        category_service: CategoryService,
        footer_service: FooterService,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler with required services."""
        self.client = client
        self.article_service = article_service
        self.category_service = category_service
        self.footer_service = footer_service
        self.ui = ui

    async def close(self) -> None:
        """Lets background work finish and releases the HTTP connection pool."""
        await self.article_service.drain_background_tasks()
        aclose = getattr(self.client, "aclose", None)
        if aclose is not None:
            await aclose()

    # --- Articles ---

    async def handle_articles(self, page: int = 1, page_size: int = 10) -> None:
        logger.info(f"Handling 'articles' command: page={page}, page_size={page_size}")
        try:
            response = await self.article_service.get_articles(page=page, page_size=page_size)
        except CMSClientError as e:
            logger.error(f"Articles command failed: {e}")
            self.ui.display_error(f"Listing articles failed: {e}")
            return
        meta = response.pagination
        self.ui.display_table(
            f"Articles (page {meta.page or page} of {meta.page_count or '?'}, {meta.total or 0} total)",
            ARTICLE_COLUMNS,
            _article_rows(response.items),
        )

    async def handle_article(self, slug: str) -> None:
        logger.info(f"Handling 'article' command for slug: {slug}")
        try:
            article = await self.article_service.get_article_by_slug(slug)
        except CMSClientError as e:
            logger.error(f"Article command failed: {e}")
            self.ui.display_error(f"Fetching article failed: {e}")
            return
        if article is None:
            self.ui.display_warning(f"No published article with slug '{slug}'.")
            return
        rows = [
            ["ID", article.id],
            ["Document ID", article.document_id],
            ["Title", article.title],
            ["Published", article.published_at],
            ["Author", article.author.name if article.author else None],
            ["Category", article.category.name if article.category else None],
            ["Tags", ", ".join(t.name for t in article.tags)],
            ["Views", article.view_count],
            ["Related", ", ".join(r.slug for r in article.related_articles)],
        ]
        self.ui.display_table(article.title or slug, ["Field", "Value"], rows)
        if article.description:
            self.ui.display_output(article.description, title="Description")

    async def handle_featured(self, limit: int = 6) -> None:
        logger.info(f"Handling 'featured' command: limit={limit}")
        try:
            response = await self.article_service.get_featured_articles(limit=limit)
        except CMSClientError as e:
            logger.error(f"Featured command failed: {e}")
            self.ui.display_error(f"Listing featured articles failed: {e}")
            return
        self.ui.display_table("Featured articles", ARTICLE_COLUMNS, _article_rows(response.items))

    async def handle_related(self, article_id: str, limit: int = 4) -> None:
        logger.info(f"Handling 'related' command for article {article_id}")
        try:
            response = await self.article_service.get_related_articles(article_id, limit=limit)
        except CMSClientError as e:
            logger.error(f"Related command failed: {e}")
            self.ui.display_error(f"Listing related articles failed: {e}")
            return
        self.ui.display_table(f"Related to {article_id}", ARTICLE_COLUMNS, _article_rows(response.items))

    async def handle_archives(self) -> None:
        logger.info("Handling 'archives' command")
        try:
            archives = await self.article_service.get_archives()
        except CMSClientError as e:
            logger.error(f"Archives command failed: {e}")
            self.ui.display_error(f"Building archives failed: {e}")
            return
        self.ui.display_table("Archives", ["Month", "Articles"], [[a.month, a.count] for a in archives])

    # --- Categories & footer ---

    async def handle_categories(self) -> None:
        logger.info("Handling 'categories' command")
        try:
            response = await self.category_service.get_categories_with_article_count()
        except CMSClientError as e:
            logger.error(f"Categories command failed: {e}")
            self.ui.display_error(f"Listing categories failed: {e}")
            return
        rows = [[c.id, c.name, c.slug, c.article_count] for c in response.items]
        self.ui.display_table("Categories", ["ID", "Name", "Slug", "Articles"], rows)

    async def handle_footer(self, locale: Optional[str] = None) -> None:
        logger.info(f"Handling 'footer' command for locale: {locale or 'default'}")
        footer = await self.footer_service.get_footer(locale)
        if footer is None:
            self.ui.display_warning("No footer available.")
            return
        rows: List[List[Any]] = [
            ["Company", footer.company_name],
            ["Copyright", footer.copyright],
        ]
        rows.extend([f"Social: {link.platform}", link.url] for link in footer.social_links)
        rows.extend([f"Menu: {link.label}", link.url] for link in footer.menu_links)
        if footer.contact_info is not None:
            rows.append(["Contact", footer.contact_info.email])
        self.ui.display_table("Footer", ["Field", "Value"], rows)

    # --- Raw access ---

    async def handle_find(self, content_type: str, query_json: Optional[str] = None) -> None:
        """Runs a raw collection query and prints the JSON payload."""
        logger.info(f"Handling 'find' command for content type: {content_type}")
        try:
            query = _parse_query(query_json)
            response = await self.client.find(content_type, query)
        except (ValueError, CMSClientError) as e:
            logger.error(f"Find command failed: {e}")
            self.ui.display_error(f"Find failed: {e}")
            return
        payload = {"data": response.items, "meta": response.meta}
        self.ui.display_output(json.dumps(payload, indent=2, ensure_ascii=False),
                               title=f"{content_type} ({len(response)} items)", as_json=True)

    def handle_serialize(self, query_json: str) -> None:
        show_serialized_query(self.ui, query_json)
