"""Main entry point for the cmsclient developer CLI.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

logger = logging.getLogger(__name__)

# --- Core Layer ---
from cmsclient.core.command_handler import CommandHandler, show_serialized_query
from cmsclient.core.services.article_service import ArticleService
from cmsclient.core.services.category_service import CategoryService
from cmsclient.core.services.footer_service import FooterService

# --- Domain Layer ---
from cmsclient.domain.errors import CMSClientError

# --- Infrastructure Layer ---
# Config
from cmsclient.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE,
    get_client_settings,
    get_config,
    load_configuration,
)
# UI
from cmsclient.infrastructure.cli.display import ConsoleDisplay
# HTTP
from cmsclient.infrastructure.http.strapi_client import StrapiClient
# Monitoring
from cmsclient.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging

# --- Dependency Injection Container (Manual) ---

_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies(config_file: Path = DEFAULT_CONFIG_FILE) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    try:
        # 1. Load Configuration First
        load_configuration(config_file=config_file)
        setup_logging(
            log_level=get_config('logging.level', 'WARNING'),
            log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
            log_file=get_config('logging.file'),
        )
        logger.info("Configuration and logging initialized.")

        # 2. Content API client (owns the shared cache and quota)
        settings = get_client_settings()
        dependencies['client'] = StrapiClient.from_settings(settings)

        # 3. Core services
        dependencies['article_service'] = ArticleService(dependencies['client'])
        dependencies['category_service'] = CategoryService(dependencies['client'])
        dependencies['footer_service'] = FooterService(dependencies['client'])
        logger.info("Core services initialized.")

        # 4. Command handler
        dependencies['command_handler'] = CommandHandler(
            client=dependencies['client'],
            article_service=dependencies['article_service'],
            category_service=dependencies['category_service'],
            footer_service=dependencies['footer_service'],
            ui=dependencies['ui'],
        )
        return dependencies

    except CMSClientError as e:
        logger.error(f"Fatal Error during application initialization: {e}")
        dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        sys.exit(1)


def get_dependencies() -> Dict[str, Any]:
    """Builds the dependency graph on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def get_handler() -> CommandHandler:
    return get_dependencies()['command_handler']


# --- Typer App Definition ---
app = typer.Typer(
    name="cmsclient",
    help="cmsclient: browse a headless CMS content API from the terminal.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, None]) -> None:
    """Runs a handler coroutine, then drains background work and closes the client."""
    handler = get_handler()

    async def _run() -> None:
        try:
            await coro
        finally:
            await handler.close()

    asyncio.run(_run())


# --- CLI Commands ---

@app.command()
def articles(
    page: Annotated[int, typer.Option("--page", min=1, help="Page number.")] = 1,
    page_size: Annotated[int, typer.Option("--page-size", min=1, help="Articles per page.")] = 10,
):
    """List published articles, newest first."""
    run_async(get_handler().handle_articles(page=page, page_size=page_size))


@app.command()
def article(
    slug: Annotated[str, typer.Argument(help="Article slug.")],
):
    """Show one article by slug (counts a view)."""
    run_async(get_handler().handle_article(slug))


@app.command()
def featured(
    limit: Annotated[int, typer.Option("--limit", min=1, help="Maximum number of articles.")] = 6,
):
    """List featured articles."""
    run_async(get_handler().handle_featured(limit=limit))


@app.command()
def related(
    article_id: Annotated[str, typer.Argument(help="Article id or document id.")],
    limit: Annotated[int, typer.Option("--limit", min=1, help="Maximum number of articles.")] = 4,
):
    """List articles sharing a category or tag with ARTICLE_ID."""
    run_async(get_handler().handle_related(article_id, limit=limit))


@app.command()
def archives():
    """Show published article counts per month."""
    run_async(get_handler().handle_archives())


@app.command()
def categories():
    """List categories with their article counts."""
    run_async(get_handler().handle_categories())


@app.command()
def footer(
    locale: Annotated[Optional[str], typer.Option("--locale", "-l", help="Locale code, e.g. 'en'.")] = None,
):
    """Show the site footer."""
    run_async(get_handler().handle_footer(locale))


@app.command()
def find(
    content_type: Annotated[str, typer.Argument(help="Collection name, e.g. 'articles'.")],
    query: Annotated[Optional[str], typer.Option("--query", "-q", help="Query description as JSON.")] = None,
):
    """Run a raw collection query and print the JSON response."""
    run_async(get_handler().handle_find(content_type, query))


@app.command()
def serialize(
    query: Annotated[str, typer.Argument(help="Query description as JSON.")],
):
    """Print the query string for a JSON query description (no network)."""
    # Serializing needs neither configuration nor a client
    show_serialized_query(ConsoleDisplay(), query)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
