"""
Shared pytest fixtures for sellerhub tests.

- required settings are set in the environment before sellerhub is imported
- in-memory SQLite session per test
- MarketplaceStub: httpx.MockTransport that records requests and serves canned payloads
"""

import os

os.environ.setdefault("APP_SECRET_KEY", "test-app-secret")
os.environ.setdefault("MARKETPLACE_APP_KEY", "K")
os.environ.setdefault("MARKETPLACE_APP_SECRET", "S")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sellerhub.models.account  # noqa: F401
from sellerhub.models.base import Base
from sellerhub.services import accounts as accounts_module
from sellerhub.services.accounts import SqlAccountStore
from sellerhub.services.dispatcher import SignedRequestDispatcher
from sellerhub.services.tokens import TokenExchangeClient

API_BASE = "https://api.test"
AUTH_BASE = "https://auth.test"
NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_MS = 1767268800000


Handler = Union[dict, Callable[[httpx.Request], Any]]


class MarketplaceStub:
    """
    Path router over httpx.MockTransport.

    Usage:
        stub.on("/auth/token/create", {"access_token": "T1", ...})
        stub.on("/order/items/get", lambda request: httpx.Response(500))
        client = TokenExchangeClient(transport=stub.transport, ...)
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[str, Handler] = {}

    def on(self, path: str, handler: Handler) -> None:
        self._routes[path] = handler

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def params(self, index: int = -1) -> Dict[str, str]:
        return dict(self.requests[index].url.params)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"code": "NotFound", "message": request.url.path})
        if callable(handler):
            result = handler(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        return httpx.Response(200, json=handler)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


@pytest.fixture
def stub():
    return MarketplaceStub()


@pytest.fixture
def token_client(stub):
    return TokenExchangeClient(
        app_key="K", app_secret="S", base_url=AUTH_BASE, timeout=5, transport=stub.transport
    )


@pytest.fixture
def dispatcher(stub):
    return SignedRequestDispatcher(
        app_key="K", app_secret="S", base_url=API_BASE, timeout=5, transport=stub.transport
    )


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store(db):
    return SqlAccountStore(db)


@pytest.fixture
def clock(monkeypatch):
    """Frozen store clock; call clock.set(dt) to move it."""

    class _Clock:
        now = NOW

        def set(self, value: datetime) -> None:
            self.now = value

    c = _Clock()
    monkeypatch.setattr(accounts_module, "_utcnow", lambda: c.now)
    return c
