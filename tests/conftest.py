import httpx
import pytest
import pytest_asyncio
from typer.testing import CliRunner

from cmsclient.infrastructure.cache.caching_service import ResponseCache
from cmsclient.infrastructure.config.settings import clear_test_config
from cmsclient.infrastructure.http.strapi_client import StrapiClient
from cmsclient.infrastructure.resilience.rate_limiter import RateLimiter

from tests.fake_cms import API_TOKEN, BASE_URL, FakeCMS


@pytest.fixture
def cms() -> FakeCMS:
    return FakeCMS()


@pytest_asyncio.fixture
async def client(cms: FakeCMS):
    """A StrapiClient wired to the fake CMS with a fresh cache and quota."""
    http_client = httpx.AsyncClient(transport=cms.transport())
    strapi = StrapiClient(
        base_url=BASE_URL,
        api_token=API_TOKEN,
        cache=ResponseCache(),
        rate_limiter=RateLimiter(),
        http_client=http_client,
    )
    yield strapi
    await http_client.aclose()


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_test_config():
    """Keeps configuration overrides from leaking between tests."""
    clear_test_config()
    yield
    clear_test_config()
