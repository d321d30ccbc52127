"""Token cache for identity and attestation credentials.

Each token kind has its own cache entry with its own expiry. A cache hands
out the stored value while it is still valid and mints a new one otherwise.
Minting goes through an async callable supplied by the caller, so the cache
does not know which backend it talks to.
"""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = 3600


class TokenKind(enum.Enum):
    """The two credentials a request can carry."""

    IDENTITY = "identity"
    ATTESTATION = "attestation"


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token as returned by a provider.

    ``expires_in`` is in seconds; None means the provider did not say.
    """

    value: str
    expires_in: float | None = None


@dataclass(frozen=True)
class CachedToken:
    """A token held by the cache together with its absolute expiry."""

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


Minter = Callable[[], Awaitable[IssuedToken]]


class TokenCache:
    """Cache a single token kind and refresh it on demand."""

    def __init__(
        self,
        kind: TokenKind,
        mint: Minter,
        *,
        clock: Callable[[], float] = time.time,
        default_ttl: float = DEFAULT_TOKEN_TTL,
        expiry_margin: float = 0,
    ) -> None:
        self.kind = kind
        self._mint = mint
        self._clock = clock
        self.default_ttl = default_ttl
        self.expiry_margin = expiry_margin
        self._cached: CachedToken | None = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> CachedToken | None:
        return self._cached

    async def get_valid_token(self) -> str:
        """Return the cached token if still valid, otherwise mint a new one."""
        async with self._lock:
            cached = self._cached
            if cached and cached.is_valid(self._clock()):
                logger.debug(f"Using cached {self.kind.value} token")
                return cached.value
            return await self._mint_and_store()

    async def refresh(self) -> str:
        """Mint a new token unconditionally and replace the cached one."""
        async with self._lock:
            return await self._mint_and_store()

    def invalidate(self) -> None:
        """Drop the cached token so the next request mints a new one."""
        self._cached = None

    def prime(self, issued: IssuedToken) -> None:
        """Store a token obtained elsewhere, e.g. returned by a sign-in call."""
        self._store(issued)

    async def _mint_and_store(self) -> str:
        issued = await self._mint()
        self._store(issued)
        logger.info(f"Obtained {self.kind.value} token")
        return issued.value

    def _store(self, issued: IssuedToken) -> None:
        ttl = issued.expires_in if issued.expires_in is not None else self.default_ttl
        expires_at = self._clock() + ttl - self.expiry_margin
        self._cached = CachedToken(value=issued.value, expires_at=expires_at)


class TokenManager:
    """Holds the identity cache and, when attestation is in use, the attestation cache."""

    def __init__(self, identity: TokenCache, attestation: TokenCache | None = None) -> None:
        self._caches: dict[TokenKind, TokenCache] = {TokenKind.IDENTITY: identity}
        if attestation is not None:
            self._caches[TokenKind.ATTESTATION] = attestation

    def supports(self, kind: TokenKind) -> bool:
        return kind in self._caches

    def cache(self, kind: TokenKind) -> TokenCache:
        try:
            return self._caches[kind]
        except KeyError:
            raise ValueError(f"No {kind.value} token cache configured") from None

    async def get_valid_token(self, kind: TokenKind) -> str:
        return await self.cache(kind).get_valid_token()

    async def refresh(self, kind: TokenKind) -> str:
        return await self.cache(kind).refresh()

    def invalidate(self, kind: TokenKind) -> None:
        self.cache(kind).invalidate()

    def clear(self) -> None:
        """Drop every cached token (used on sign-out)."""
        for cache in self._caches.values():
            cache.invalidate()
