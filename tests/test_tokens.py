"""Tests for the identity/attestation token cache."""

import asyncio

import pytest

from foodmap.errors import AuthenticationRequiredError
from foodmap.tokens import IssuedToken, TokenCache, TokenKind, TokenManager

from .conftest import CountingMinter


@pytest.mark.asyncio
async def test_cached_token_reused_until_expiry(clock):
    """Mint at T0 for 3600s: T0+1800 reuses, T0+3700 mints exactly once."""
    minter = CountingMinter("id", expires_in=3600)
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock)

    assert await cache.get_valid_token() == "id-1"
    assert minter.calls == 1

    clock.advance(1800)
    assert await cache.get_valid_token() == "id-1"
    assert minter.calls == 1

    clock.advance(1900)
    assert await cache.get_valid_token() == "id-2"
    assert minter.calls == 2


@pytest.mark.asyncio
async def test_token_is_invalid_exactly_at_expiry(clock):
    minter = CountingMinter("id", expires_in=60)
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock)
    await cache.get_valid_token()

    clock.advance(60)
    await cache.get_valid_token()

    assert minter.calls == 2


@pytest.mark.asyncio
async def test_default_ttl_used_when_provider_gives_none(clock):
    minter = CountingMinter("id", expires_in=None)
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock, default_ttl=3600)

    await cache.get_valid_token()

    assert cache.cached.expires_at == clock.now + 3600


@pytest.mark.asyncio
async def test_expiry_margin_shortens_lifetime(clock):
    minter = CountingMinter("id", expires_in=3600)
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock, expiry_margin=60)

    await cache.get_valid_token()
    clock.advance(3550)
    await cache.get_valid_token()

    assert minter.calls == 2


@pytest.mark.asyncio
async def test_refresh_always_mints(clock):
    minter = CountingMinter("id")
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock)

    await cache.get_valid_token()
    assert await cache.refresh() == "id-2"
    assert await cache.get_valid_token() == "id-2"
    assert minter.calls == 2


@pytest.mark.asyncio
async def test_invalidate_forces_next_mint(clock):
    minter = CountingMinter("id")
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock)

    await cache.get_valid_token()
    cache.invalidate()

    assert cache.cached is None
    assert await cache.get_valid_token() == "id-2"


@pytest.mark.asyncio
async def test_prime_stores_token_without_minting(clock):
    minter = CountingMinter("id")
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock)

    cache.prime(IssuedToken(value="from-sign-in", expires_in=3600))

    assert await cache.get_valid_token() == "from-sign-in"
    assert minter.calls == 0


@pytest.mark.asyncio
async def test_mint_failure_propagates_and_is_not_retried(clock):
    minter = CountingMinter("id", error=AuthenticationRequiredError())
    cache = TokenCache(TokenKind.IDENTITY, minter, clock=clock)

    with pytest.raises(AuthenticationRequiredError):
        await cache.get_valid_token()

    assert minter.calls == 1
    assert cache.cached is None


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_mint(clock):
    calls = 0

    async def slow_mint():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return IssuedToken(value=f"id-{calls}", expires_in=3600)

    cache = TokenCache(TokenKind.IDENTITY, slow_mint, clock=clock)

    results = await asyncio.gather(*(cache.get_valid_token() for _ in range(5)))

    assert results == ["id-1"] * 5
    assert calls == 1


class TestTokenManager:
    @pytest.mark.asyncio
    async def test_kinds_have_independent_lifecycles(self, tokens, identity_minter, attestation_minter):
        await tokens.get_valid_token(TokenKind.IDENTITY)
        await tokens.get_valid_token(TokenKind.ATTESTATION)

        tokens.invalidate(TokenKind.ATTESTATION)
        await tokens.get_valid_token(TokenKind.IDENTITY)
        await tokens.get_valid_token(TokenKind.ATTESTATION)

        assert identity_minter.calls == 1
        assert attestation_minter.calls == 2

    @pytest.mark.asyncio
    async def test_clear_drops_every_token(self, tokens, identity_minter, attestation_minter):
        await tokens.get_valid_token(TokenKind.IDENTITY)
        await tokens.get_valid_token(TokenKind.ATTESTATION)

        tokens.clear()

        assert tokens.cache(TokenKind.IDENTITY).cached is None
        assert tokens.cache(TokenKind.ATTESTATION).cached is None

    def test_attestation_is_optional(self, clock):
        manager = TokenManager(TokenCache(TokenKind.IDENTITY, CountingMinter("id"), clock=clock))

        assert manager.supports(TokenKind.IDENTITY)
        assert not manager.supports(TokenKind.ATTESTATION)
        with pytest.raises(ValueError):
            manager.cache(TokenKind.ATTESTATION)
