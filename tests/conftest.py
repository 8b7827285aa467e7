"""Pytest configuration and fixtures.

The record store is SQLite in-memory unless TEST_DATABASE_URL is set.
DNS and HTTP are replaced by in-process fakes so no test touches the network.
"""
import os
import uuid

# Must be set before app.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")

import dns.resolver
import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.db.base_class import Base


# --- Network fakes ---

class FakeTXT:
    """Mimics a dnspython TXT rdata: ``strings`` is a tuple of bytes."""

    def __init__(self, *strings: str):
        self.strings = tuple(s.encode() for s in strings)


class FakeResolver:
    def __init__(self):
        self.zones = {}
        self.queries = []

    def set_txt(self, name: str, *values: str) -> None:
        self.zones[name] = [FakeTXT(v) for v in values]

    def fail(self, name: str, exc: Exception) -> None:
        self.zones[name] = exc

    def resolve(self, qname, rdtype):
        self.queries.append((qname, rdtype))
        answer = self.zones.get(qname)
        if answer is None:
            raise dns.resolver.NXDOMAIN()
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeWeb:
    """Routes (method, host, path) to canned responses via httpx.MockTransport.

    Unknown routes behave like an unreachable host.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    @staticmethod
    def _key(method: str, url) -> tuple:
        url = httpx.URL(url)
        return method.upper(), url.host, url.path or "/"

    def add(self, method: str, url: str, status: int = 200, text: str = "") -> None:
        self.routes[self._key(method, url)] = (status, text)

    def fail(self, method: str, url: str, exc: Exception) -> None:
        self.routes[self._key(method, url)] = exc

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(self._key(request.method, request.url))
        if route is None:
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)
        if isinstance(route, Exception):
            raise route
        status, text = route
        return httpx.Response(status, text=text, request=request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler), follow_redirects=True)


# --- DB URL ---

def _build_test_db_url() -> str:
    return os.getenv("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="session")
def test_engine():
    url = _build_test_db_url()
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    import app.models  # noqa: F401  (register every table on Base.metadata)

    Base.metadata.create_all(bind=test_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def http_client(web):
    with web.client() as client:
        yield client


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def other_user_id():
    return uuid.uuid4()


@pytest.fixture
async def client(session_factory, resolver, web):
    """
    Async HTTP client against the app with:
      - get_db bound to the test database
      - the DNS resolver and HTTP client replaced by fakes
    """
    from app.main import app as fastapi_app
    from app.api import deps

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def _override_http_client():
        with web.client() as c:
            yield c

    fastapi_app.dependency_overrides[deps.get_db] = _override_get_db
    fastapi_app.dependency_overrides[deps.get_dns_resolver] = lambda: resolver
    fastapi_app.dependency_overrides[deps.get_http_client] = _override_http_client

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()


# --- Helpers ---

def auth_headers(user_id) -> dict:
    """Bearer headers for a user, as issued by the identity provider."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def add_domain(client: AsyncClient, headers: dict, domain: str, method: str = "dns") -> dict:
    """Helper: register a domain via API and return its JSON."""
    resp = await client.post(
        "/api/v1/domains/",
        json={"domain": domain, "verificationMethod": method},
        headers=headers,
    )
    assert resp.status_code == 201, f"Add domain failed: {resp.text}"
    return resp.json()
