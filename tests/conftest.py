"""Shared test fixtures."""

import json
import re

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from roomhooks.db.base import Base
# Import all models to register with Base.metadata
import roomhooks.db.models  # noqa: F401
from roomhooks.errors.exceptions import RemoteAPIError
from roomhooks.github.base import WebhookClient
from roomhooks.github.client import GitHubClient
from roomhooks.models.github import WebhookDescriptor
from roomhooks.services.reconciler import RepositoryLocks

CALLBACK_URL = "https://chat.example.test/api/v1/github/webhook"
GITHUB_URL = "https://api.github.test"


class RecordingWebhookClient(WebhookClient):
    """In-process webhook client that records every remote call."""

    def __init__(self) -> None:
        self.created: list[tuple] = []
        self.patched: list[tuple] = []
        self.fail = False
        self.drop_events: set[str] = set()
        self._next_id = 100

    async def create_webhook(self, repository, callback_url, token, events):
        if self.fail:
            raise RemoteAPIError("GitHub returned 422", remote_status=422)
        events = set(events)
        self.created.append((repository, callback_url, token, events))
        hook_id = str(self._next_id)
        self._next_id += 1
        return WebhookDescriptor(id=hook_id, events=sorted(events - self.drop_events))

    async def patch_webhook(self, repository, token, webhook_id, events):
        if self.fail:
            raise RemoteAPIError("GitHub returned 404", remote_status=404)
        events = set(events)
        self.patched.append((repository, token, webhook_id, events))
        return WebhookDescriptor(id=webhook_id, events=sorted(events - self.drop_events))


class FakeGitHub:
    """Minimal stand-in for the GitHub REST API behind an ``httpx.MockTransport``."""

    _HOOKS = re.compile(r"^/repos/([^/]+/[^/]+)/hooks$")
    _HOOK = re.compile(r"^/repos/([^/]+/[^/]+)/hooks/(\d+)$")
    _ISSUES = re.compile(r"^/repos/([^/]+/[^/]+)/issues$")
    _TEMPLATES = re.compile(r"^/repos/([^/]+/[^/]+)/contents/\.github/ISSUE_TEMPLATE$")

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict | None]] = []
        self.hooks: dict[int, dict] = {}
        self.templates: dict[str, list[dict]] = {}
        self.fail_status: int | None = None
        self._next_hook = 9000

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls_for(self, method: str) -> list[tuple[str, str, dict | None]]:
        return [c for c in self.calls if c[0] == method]

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        self.calls.append((request.method, path, body))

        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"message": "Validation Failed"})

        if request.method == "POST" and (m := self._HOOKS.match(path)):
            self._next_hook += 1
            hook = {
                "id": self._next_hook,
                "active": True,
                "events": body["events"],
                "config": body["config"],
            }
            self.hooks[self._next_hook] = hook
            return httpx.Response(201, json=hook)

        if request.method == "PATCH" and (m := self._HOOK.match(path)):
            hook = self.hooks.get(int(m.group(2)))
            if hook is None:
                return httpx.Response(404, json={"message": "Not Found"})
            hook["events"] = body["events"]
            return httpx.Response(200, json=hook)

        if request.method == "POST" and (m := self._ISSUES.match(path)):
            return httpx.Response(
                201,
                json={
                    "id": 555,
                    "number": 42,
                    "title": body["title"],
                    "html_url": f"https://github.test/{m.group(1)}/issues/42",
                },
            )

        if request.method == "GET" and (m := self._TEMPLATES.match(path)):
            entries = self.templates.get(m.group(1))
            if entries is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=entries)

        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def webhook_client() -> RecordingWebhookClient:
    return RecordingWebhookClient()


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_client(fake_github) -> GitHubClient:
    return GitHubClient(base_url=GITHUB_URL, timeout=5.0, transport=fake_github.transport())


@pytest.fixture
def app(db_engine, github_client):
    """Create a test application instance with in-memory DB and fake GitHub."""
    from roomhooks.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    _app.state.github_client = github_client
    _app.state.repository_locks = RepositoryLocks()
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
