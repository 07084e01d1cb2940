"""Global pytest fixtures for testing."""

import contextlib
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field

import dotenv
import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_core.config import Settings
from tidings_database import Database
from tidings_rss import ContentExtractor, FeedParser

with contextlib.suppress(OSError):
    dotenv.load_dotenv()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@dataclass
class FakeWeb:
    """Serves canned HTTP responses through httpx.MockTransport."""

    routes: dict[str, tuple[int, bytes, str]] = field(default_factory=dict)
    failures: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(
        self,
        url: str,
        body: str | bytes,
        status_code: int = 200,
        content_type: str = "application/rss+xml; charset=utf-8",
    ) -> None:
        content = body.encode("utf-8") if isinstance(body, str) else body
        self.failures.discard(url)
        self.routes[url] = (status_code, content, content_type)

    def fail(self, url: str) -> None:
        """Make requests to ``url`` raise a transport error."""
        self.failures.add(url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.failures:
            raise httpx.ConnectError("connection refused", request=request)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")
        status_code, content, content_type = route
        return httpx.Response(status_code, content=content, headers={"content-type": content_type})

    def requested(self, url: str) -> int:
        return sum(1 for request in self.requests if str(request.url) == url)


def rss_document(title: str, items: list[tuple[str, str]], link: str = "https://example.com") -> str:
    """Build a minimal RSS 2.0 document from (title, link) pairs."""
    entries = "".join(
        f"<item><title>{item_title}</title><link>{item_link}</link>"
        f"<guid>{item_link}</guid><description>About {item_title}</description></item>"
        for item_title, item_link in items
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<rss version="2.0"><channel><title>{title}</title><link>{link}</link>'
        f"<description>{title} description</description>{entries}</channel></rss>"
    )


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and .env files."""
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        full_content_delay_seconds=0,
        refresh_interval_minutes=30,
    )


@pytest.fixture
def fake_web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def make_rss() -> Callable[..., str]:
    return rss_document


@pytest_asyncio.fixture
async def http_client(fake_web: FakeWeb) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client answering from fake_web."""
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_web.handler), follow_redirects=True
    ) as client:
        yield client


@pytest.fixture
def feed_parser(http_client: httpx.AsyncClient) -> FeedParser:
    return FeedParser(client=http_client)


@pytest.fixture
def content_extractor(http_client: httpx.AsyncClient) -> ContentExtractor:
    return ContentExtractor(client=http_client)


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database for each test."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with database.session() as session:
        yield session
