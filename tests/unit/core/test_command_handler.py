import json
from unittest.mock import MagicMock

import pytest

from cmsclient.core.command_handler import CommandHandler, show_serialized_query
from cmsclient.core.services.article_service import ArticleService
from cmsclient.core.services.category_service import CategoryService
from cmsclient.core.services.footer_service import FooterService
from cmsclient.domain.errors import ApiError, NetworkError
from cmsclient.domain.interfaces.user_interface import UserInterface
from cmsclient.domain.models.content import Article, Category, Footer
from cmsclient.domain.models.responses import ArchiveEntry, CollectionResponse, PaginationMeta
from cmsclient.infrastructure.http.strapi_client import StrapiClient


@pytest.fixture
def mock_client():
    return MagicMock(spec=StrapiClient)


@pytest.fixture
def mock_article_service():
    return MagicMock(spec=ArticleService)


@pytest.fixture
def mock_category_service():
    return MagicMock(spec=CategoryService)


@pytest.fixture
def mock_footer_service():
    return MagicMock(spec=FooterService)


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def command_handler(mock_client, mock_article_service, mock_category_service, mock_footer_service, mock_ui):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(
        client=mock_client,
        article_service=mock_article_service,
        category_service=mock_category_service,
        footer_service=mock_footer_service,
        ui=mock_ui,
    )


def article(id_: int, slug: str) -> Article:
    return Article.from_dict({"id": id_, "title": slug.title(), "slug": slug,
                              "publishedAt": "2024-03-01T00:00:00.000Z", "category": {"id": 1, "name": "Tech"}})


@pytest.mark.asyncio
async def test_handle_articles(command_handler: CommandHandler, mock_article_service: MagicMock,
                               mock_ui: MagicMock):
    mock_article_service.get_articles.return_value = CollectionResponse(
        items=[article(1, "first")], pagination=PaginationMeta(page=2, page_count=3, total=21))

    await command_handler.handle_articles(page=2, page_size=10)

    mock_article_service.get_articles.assert_awaited_once_with(page=2, page_size=10)
    title, columns, rows = mock_ui.display_table.call_args.args
    assert title == "Articles (page 2 of 3, 21 total)"
    assert columns[:3] == ["ID", "Title", "Slug"]
    assert rows == [[1, "First", "first", "2024-03-01T00:00:00.000Z", "Tech"]]


@pytest.mark.asyncio
async def test_handle_articles_error(command_handler: CommandHandler, mock_article_service: MagicMock,
                                     mock_ui: MagicMock):
    mock_article_service.get_articles.side_effect = NetworkError("connection refused")

    await command_handler.handle_articles()

    mock_ui.display_error.assert_called_once_with("Listing articles failed: connection refused")
    mock_ui.display_table.assert_not_called()


@pytest.mark.asyncio
async def test_handle_article_found_and_missing(command_handler: CommandHandler,
                                                mock_article_service: MagicMock, mock_ui: MagicMock):
    mock_article_service.get_article_by_slug.return_value = article(1, "first")
    await command_handler.handle_article("first")
    title, columns, rows = mock_ui.display_table.call_args.args
    assert title == "First"
    assert ["Title", "First"] in rows

    mock_article_service.get_article_by_slug.return_value = None
    await command_handler.handle_article("nope")
    mock_ui.display_warning.assert_called_once_with("No published article with slug 'nope'.")


@pytest.mark.asyncio
async def test_handle_archives(command_handler: CommandHandler, mock_article_service: MagicMock,
                               mock_ui: MagicMock):
    mock_article_service.get_archives.return_value = [ArchiveEntry("2024-03", 2024, 3, 2)]
    await command_handler.handle_archives()
    mock_ui.display_table.assert_called_once_with("Archives", ["Month", "Articles"], [["2024-03", 2]])


@pytest.mark.asyncio
async def test_handle_related_error(command_handler: CommandHandler, mock_article_service: MagicMock,
                                    mock_ui: MagicMock):
    mock_article_service.get_related_articles.side_effect = ApiError(500, "Internal Server Error")
    await command_handler.handle_related("abc", limit=2)
    mock_article_service.get_related_articles.assert_awaited_once_with("abc", limit=2)
    mock_ui.display_error.assert_called_once_with(
        "Listing related articles failed: API error 500: Internal Server Error")


@pytest.mark.asyncio
async def test_handle_categories(command_handler: CommandHandler, mock_category_service: MagicMock,
                                 mock_ui: MagicMock):
    mock_category_service.get_categories_with_article_count.return_value = CollectionResponse(
        items=[Category.from_dict({"id": 1, "name": "Tech", "slug": "tech", "articles": [{"id": 5}]})])
    await command_handler.handle_categories()
    mock_ui.display_table.assert_called_once_with(
        "Categories", ["ID", "Name", "Slug", "Articles"], [[1, "Tech", "tech", 1]])


@pytest.mark.asyncio
async def test_handle_footer(command_handler: CommandHandler, mock_footer_service: MagicMock,
                             mock_ui: MagicMock):
    mock_footer_service.get_footer.return_value = Footer.from_dict({
        "id": 1, "companyName": "ACME", "menuLinks": [{"id": 2, "label": "About", "url": "/about"}]})
    await command_handler.handle_footer("en")
    mock_footer_service.get_footer.assert_awaited_once_with("en")
    rows = mock_ui.display_table.call_args.args[2]
    assert ["Company", "ACME"] in rows
    assert ["Menu: About", "/about"] in rows

    mock_footer_service.get_footer.return_value = None
    await command_handler.handle_footer()
    mock_ui.display_warning.assert_called_once_with("No footer available.")


@pytest.mark.asyncio
async def test_handle_find_prints_json(command_handler: CommandHandler, mock_client: MagicMock,
                                       mock_ui: MagicMock):
    mock_client.find.return_value = CollectionResponse(items=[{"id": 1}], meta={"pagination": {"total": 1}})

    await command_handler.handle_find("tags", '{"sort": "name:asc"}')

    content_type, query = mock_client.find.call_args.args
    assert content_type == "tags"
    assert query.sort == "name:asc"
    output = mock_ui.display_output.call_args.args[0]
    assert json.loads(output) == {"data": [{"id": 1}], "meta": {"pagination": {"total": 1}}}


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '{"limit": 3}'])
async def test_handle_find_rejects_bad_queries(command_handler: CommandHandler, mock_client: MagicMock,
                                               mock_ui: MagicMock, raw: str):
    await command_handler.handle_find("tags", raw)
    mock_client.find.assert_not_called()
    assert mock_ui.display_error.call_args.args[0].startswith("Find failed:")


def test_show_serialized_query(mock_ui: MagicMock):
    show_serialized_query(mock_ui, '{"filters": {"slug": {"$eq": "a b"}}, "sort": ["id:asc"]}')
    mock_ui.display_output.assert_called_once_with("filters[slug][$eq]=a%20b&sort=id:asc", title="Query string")


def test_show_serialized_query_invalid(mock_ui: MagicMock):
    show_serialized_query(mock_ui, '{"populate": 42}')
    mock_ui.display_error.assert_called_once()
    mock_ui.display_output.assert_not_called()


@pytest.mark.asyncio
async def test_close_drains_and_closes_client(command_handler: CommandHandler, mock_client: MagicMock,
                                              mock_article_service: MagicMock):
    await command_handler.close()
    mock_article_service.drain_background_tasks.assert_awaited_once()
    mock_client.aclose.assert_awaited_once()
