"""Tests for the authenticated request executor."""

import json

import pytest
import requests
from pydantic import BaseModel

from foodmap.errors import (
    AccessDeniedError,
    AuthenticationRequiredError,
    DecodingError,
    EncodingError,
    HTTPStatusError,
    InvalidURLError,
    TokenExpiredError,
    UnknownNetworkError,
)
from foodmap.network_client import NetworkClient
from foodmap.schemas import PlaceSearchRequest
from foodmap.tokens import TokenCache, TokenKind, TokenManager

from .conftest import CountingMinter, FakeResponse


class Greeting(BaseModel):
    message: str


def _headers(call: dict) -> dict:
    return call["headers"]


class TestTokenAttachment:
    @pytest.mark.asyncio
    async def test_unauthenticated_request_fetches_no_identity_token(
        self, client, session, identity_minter, attestation_minter
    ):
        session.queue(FakeResponse(200, {"message": "hi"}))

        result = await client.get("api/v1/hello", Greeting)

        assert result == Greeting(message="hi")
        assert identity_minter.calls == 0
        assert attestation_minter.calls == 1
        headers = _headers(session.calls[0])
        assert "Authorization" not in headers
        assert headers["X-Firebase-AppCheck"] == "att-1"

    @pytest.mark.asyncio
    async def test_authenticated_request_carries_both_tokens(self, client, session):
        session.queue(FakeResponse(200, {"message": "hi"}))

        await client.get("api/v1/hello", Greeting, requires_auth=True)

        headers = _headers(session.calls[0])
        assert headers["Authorization"] == "Bearer id-1"
        assert headers["X-Firebase-AppCheck"] == "att-1"
        assert session.calls[0]["url"] == "https://api.example.com/api/v1/hello"

    @pytest.mark.asyncio
    async def test_cached_token_means_no_mint(self, client, session, identity_minter):
        session.queue(FakeResponse(200, {"message": "a"}), FakeResponse(200, {"message": "b"}))

        await client.get("api/v1/hello", Greeting, requires_auth=True)
        await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert identity_minter.calls == 1
        assert _headers(session.calls[1])["Authorization"] == "Bearer id-1"

    @pytest.mark.asyncio
    async def test_expired_token_minted_once_before_sending(
        self, client, session, clock, identity_minter
    ):
        session.queue(FakeResponse(200, {"message": "a"}), FakeResponse(200, {"message": "b"}))
        await client.get("api/v1/hello", Greeting, requires_auth=True)

        clock.advance(3700)
        mints_seen_at_send = []
        session.on_request = lambda: mints_seen_at_send.append(identity_minter.calls)
        await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert identity_minter.calls == 2
        assert mints_seen_at_send == [2]
        assert _headers(session.calls[1])["Authorization"] == "Bearer id-2"

    @pytest.mark.asyncio
    async def test_no_attestation_header_without_attestation_cache(self, clock, session):
        tokens = TokenManager(TokenCache(TokenKind.IDENTITY, CountingMinter("id"), clock=clock))
        client = NetworkClient("https://api.example.com", tokens, session=session)
        session.queue(FakeResponse(200, {"message": "hi"}))

        await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert "X-Firebase-AppCheck" not in _headers(session.calls[0])

    @pytest.mark.asyncio
    async def test_identity_mint_failure_sends_nothing(self, clock, session):
        minter = CountingMinter("id", error=AuthenticationRequiredError())
        tokens = TokenManager(TokenCache(TokenKind.IDENTITY, minter, clock=clock))
        client = NetworkClient("https://api.example.com", tokens, session=session)

        with pytest.raises(AuthenticationRequiredError):
            await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert session.calls == []


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_401_then_200_returns_body_after_one_refresh(
        self, client, session, identity_minter
    ):
        session.queue(FakeResponse(401), FakeResponse(200, {"message": "ok"}))

        result = await client.post("api/v1/thing", {"a": 1}, Greeting, requires_auth=True)

        assert result.message == "ok"
        assert identity_minter.calls == 2
        assert len(session.calls) == 2
        assert _headers(session.calls[0])["Authorization"] == "Bearer id-1"
        assert _headers(session.calls[1])["Authorization"] == "Bearer id-2"
        assert session.calls[0]["data"] == session.calls[1]["data"]

    @pytest.mark.asyncio
    async def test_second_401_is_surfaced_without_further_retry(
        self, client, session, identity_minter
    ):
        session.queue(FakeResponse(401), FakeResponse(401))

        with pytest.raises(TokenExpiredError) as exc_info:
            await client.post("api/v1/thing", {"a": 1}, Greeting, requires_auth=True)

        assert exc_info.value.status_code == 401
        assert len(session.calls) == 2
        assert identity_minter.calls == 2

    @pytest.mark.asyncio
    async def test_403_refreshes_attestation_token(
        self, client, session, identity_minter, attestation_minter
    ):
        session.queue(FakeResponse(403), FakeResponse(200, {"message": "ok"}))

        await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert identity_minter.calls == 1
        assert attestation_minter.calls == 2
        assert _headers(session.calls[1])["X-Firebase-AppCheck"] == "att-2"
        assert _headers(session.calls[1])["Authorization"] == "Bearer id-1"

    @pytest.mark.asyncio
    async def test_unauthenticated_401_refreshes_attestation_only(
        self, client, session, identity_minter, attestation_minter
    ):
        session.queue(FakeResponse(401), FakeResponse(200, {"message": "ok"}))

        await client.post("api/v1/gpt/chat", {"messages": []}, Greeting)

        assert identity_minter.calls == 0
        assert attestation_minter.calls == 2

    @pytest.mark.asyncio
    async def test_unauthenticated_401_without_attestation_is_not_retried(self, clock, session):
        tokens = TokenManager(TokenCache(TokenKind.IDENTITY, CountingMinter("id"), clock=clock))
        client = NetworkClient("https://api.example.com", tokens, session=session)
        session.queue(FakeResponse(401))

        with pytest.raises(TokenExpiredError):
            await client.get("api/v1/hello", Greeting)

        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_only_one_retry_across_different_rejections(self, client, session):
        session.queue(FakeResponse(401), FakeResponse(403))

        with pytest.raises(AccessDeniedError):
            await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert len(session.calls) == 2

    @pytest.mark.asyncio
    async def test_other_status_codes_are_not_retried(self, client, session):
        session.queue(FakeResponse(500, content=b"boom"))

        with pytest.raises(HTTPStatusError) as exc_info:
            await client.get("api/v1/hello", Greeting, requires_auth=True)

        assert exc_info.value.status_code == 500
        assert exc_info.value.user_message == "HTTP error: 500"
        assert len(session.calls) == 1


class TestEncodingAndDecoding:
    @pytest.mark.asyncio
    async def test_malformed_json_is_decoding_error(self, client, session):
        session.queue(FakeResponse(200, content=b"{not json"))

        with pytest.raises(DecodingError) as exc_info:
            await client.get("api/v1/hello", Greeting)

        assert not isinstance(exc_info.value, HTTPStatusError)

    @pytest.mark.asyncio
    async def test_shape_mismatch_is_decoding_error(self, client, session):
        session.queue(FakeResponse(200, {"unexpected": True}))

        with pytest.raises(DecodingError):
            await client.get("api/v1/hello", Greeting)

    @pytest.mark.asyncio
    async def test_list_shapes_are_supported(self, client, session):
        session.queue(FakeResponse(200, [{"message": "a"}, {"message": "b"}]))

        result = await client.get("api/v1/hello", list[Greeting])

        assert [g.message for g in result] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_untyped_request_returns_json(self, client, session):
        session.queue(FakeResponse(200, {"anything": [1, 2]}), FakeResponse(204))

        assert await client.get("api/v1/hello") == {"anything": [1, 2]}
        assert await client.post("api/v1/hello", {"x": 1}) is None

    @pytest.mark.asyncio
    async def test_unserializable_body_fails_before_any_network_or_mint(
        self, client, session, identity_minter, attestation_minter
    ):
        with pytest.raises(EncodingError):
            await client.post("api/v1/thing", {"when": object()}, Greeting, requires_auth=True)

        assert session.calls == []
        assert identity_minter.calls == 0
        assert attestation_minter.calls == 0

    @pytest.mark.asyncio
    async def test_model_body_uses_wire_names_and_drops_none(self, client, session):
        session.queue(FakeResponse(200, {"message": "ok"}))

        await client.post("api/v1/maps/search", PlaceSearchRequest(query="tacos", radius=500), Greeting)

        sent = json.loads(session.calls[0]["data"])
        assert sent == {"query": "tacos", "radius": 500}
        assert _headers(session.calls[0])["Content-Type"] == "application/json"


class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_connection_error_is_unknown_error(self, client, session):
        cause = requests.ConnectionError("connection refused")
        session.queue(cause)

        with pytest.raises(UnknownNetworkError) as exc_info:
            await client.get("api/v1/hello", Greeting)

        assert exc_info.value.cause is cause
        assert "connection refused" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_invalid_base_url(self, tokens, session):
        client = NetworkClient("not a url", tokens, session=session)

        with pytest.raises(InvalidURLError):
            await client.get("api/v1/hello", Greeting)

        assert session.calls == []

    def test_close_closes_session(self, client, session):
        client.close()

        assert session.closed
