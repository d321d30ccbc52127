"""Shared fixtures: a scripted HTTP session, a controllable clock and token minters."""

import json

import pytest
import requests

from foodmap.config import Settings
from foodmap.database import Database
from foodmap.local_store import LocalStore
from foodmap.network_client import NetworkClient
from foodmap.tokens import IssuedToken, TokenCache, TokenKind, TokenManager


class FakeResponse:
    """Just enough of ``requests.Response`` for the client code."""

    def __init__(self, status_code: int = 200, json_body=None, content: bytes | None = None):
        self.status_code = status_code
        if content is None:
            content = b"" if json_body is None else json.dumps(json_body).encode("utf-8")
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.content)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Replays scripted responses in order and records every call."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls: list[dict] = []
        self.closed = False
        self.on_request = None

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.on_request is not None:
            self.on_request()
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingMinter:
    """Async minter returning ``<prefix>-1``, ``<prefix>-2``, ... and counting calls."""

    def __init__(self, prefix: str, expires_in: float | None = 3600, error: Exception | None = None):
        self.prefix = prefix
        self.expires_in = expires_in
        self.error = error
        self.calls = 0

    async def __call__(self) -> IssuedToken:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return IssuedToken(value=f"{self.prefix}-{self.calls}", expires_in=self.expires_in)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity_minter():
    return CountingMinter("id")


@pytest.fixture
def attestation_minter():
    return CountingMinter("att")


@pytest.fixture
def tokens(clock, identity_minter, attestation_minter):
    return TokenManager(
        TokenCache(TokenKind.IDENTITY, identity_minter, clock=clock),
        TokenCache(TokenKind.ATTESTATION, attestation_minter, clock=clock),
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(tokens, session):
    return NetworkClient("https://api.example.com", tokens, session=session)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        api_base_url="https://api.example.com/",
        identity_api_key="test-key",
        attestation_enabled=False,
        database_url="sqlite://",
    )


@pytest.fixture
def database(settings):
    db = Database(settings)
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return LocalStore(database)
