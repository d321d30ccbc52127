"""Explicitly constructed application environment.

Builds every component from a ``Settings`` object and wires them together by
constructor injection. Whoever builds an environment owns it and must call
``close()``.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import requests

from .attestation import AttestationProvider
from .auth_service import AuthenticationService
from .config import Settings
from .database import Database
from .identity import IdentityBackend, IdentitySessionStore, IdentityTokenProvider
from .local_store import LocalStore
from .maps_service import MapsService
from .network_client import NetworkClient
from .suggestion_service import SuggestionService
from .tokens import TokenCache, TokenKind, TokenManager

logger = logging.getLogger(__name__)


@dataclass
class AppEnvironment:
    settings: Settings
    database: Database
    store: LocalStore
    tokens: TokenManager
    client: NetworkClient
    auth: AuthenticationService
    maps: MapsService
    suggestions: SuggestionService

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ) -> "AppEnvironment":
        """Build the environment.

        Args:
            settings: Validated settings.
            http_session: Session shared by every outbound call; a new one
                is created when omitted.
            clock: Time source for token expiry.
        """
        http_session = http_session or requests.Session()

        database = Database(settings)
        database.create_tables()
        store = LocalStore(database)

        identity = IdentityBackend(settings, session=http_session)
        if not identity.is_configured():
            logger.warning("Identity API key not set - sign-in will fail")
        sessions = IdentitySessionStore(store)

        cache_options = {
            "clock": clock,
            "default_ttl": settings.token_default_ttl,
            "expiry_margin": settings.token_expiry_margin,
        }
        identity_cache = TokenCache(
            TokenKind.IDENTITY, IdentityTokenProvider(identity, sessions), **cache_options
        )
        attestation_cache = None
        if settings.attestation_configured:
            attestation_cache = TokenCache(
                TokenKind.ATTESTATION,
                AttestationProvider(settings, session=http_session),
                **cache_options,
            )
        else:
            logger.info("App attestation is not configured; requests carry no attestation token")
        tokens = TokenManager(identity_cache, attestation_cache)

        client = NetworkClient(
            settings.base_url,
            tokens,
            session=http_session,
            timeout=settings.request_timeout,
            attestation_header=settings.attestation_header,
        )

        return cls(
            settings=settings,
            database=database,
            store=store,
            tokens=tokens,
            client=client,
            auth=AuthenticationService(client, identity, sessions, tokens, store),
            maps=MapsService(client),
            suggestions=SuggestionService(client, store),
        )

    def close(self) -> None:
        self.client.close()
        self.database.dispose()
