"""Identity backend client and identity token provider.

Wraps the identity toolkit REST API (sign-up, sign-in, token refresh,
out-of-band emails, account lookup). Calls are plain blocking ``requests``
calls; async callers run them in a worker thread.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any

import requests
from pydantic import BaseModel, ValidationError

from .config import Settings
from .errors import AuthenticationRequiredError, IdentityBackendError
from .local_store import IdentitySession, LocalStore
from .schemas.identity import (
    AccountLookupResponse,
    IdentityAccount,
    IdentityAuthResponse,
    IdentityErrorResponse,
    TokenRefreshResponse,
)
from .tokens import IssuedToken

logger = logging.getLogger(__name__)

IDENTITY_TIMEOUT = 10


class IdentityBackend:
    """Blocking client for the identity toolkit REST API."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.api_key = settings.identity_api_key
        self.base_url = settings.identity_base_url
        self.token_url = settings.identity_token_url
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.api_key)

    # =========================================================================
    # Accounts
    # =========================================================================

    def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> IdentityAuthResponse:
        payload = {"email": email, "password": password, "returnSecureToken": True}
        if display_name:
            payload["displayName"] = display_name
        return self._post("accounts:signUp", payload, IdentityAuthResponse)

    def sign_in(self, email: str, password: str) -> IdentityAuthResponse:
        return self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
            IdentityAuthResponse,
        )

    def lookup(self, id_token: str) -> IdentityAccount:
        """Fetch the account behind an ID token (verification flag, profile)."""
        response = self._post("accounts:lookup", {"idToken": id_token}, AccountLookupResponse)
        if not response.users:
            raise IdentityBackendError("USER_NOT_FOUND")
        return response.users[0]

    def update_profile(self, id_token: str, display_name: str) -> None:
        self._post(
            "accounts:update",
            {"idToken": id_token, "displayName": display_name, "returnSecureToken": False},
        )

    # =========================================================================
    # Out-of-band emails
    # =========================================================================

    def send_password_reset(self, email: str) -> None:
        self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    def send_email_verification(self, id_token: str) -> None:
        self._post("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})

    # =========================================================================
    # Tokens
    # =========================================================================

    def refresh(self, refresh_token: str) -> TokenRefreshResponse:
        """Exchange a refresh token for a fresh ID token."""
        response = self.session.post(
            self.token_url,
            params={"key": self.api_key},
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            timeout=IDENTITY_TIMEOUT,
        )
        return self._parse(response, TokenRefreshResponse)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _post(self, method: str, payload: dict[str, Any], model: type[BaseModel] | None = None):
        response = self.session.post(
            f"{self.base_url}/{method}",
            params={"key": self.api_key},
            json=payload,
            timeout=IDENTITY_TIMEOUT,
        )
        return self._parse(response, model)

    @staticmethod
    def _parse(response: requests.Response, model: type[BaseModel] | None):
        if response.status_code >= 400:
            try:
                message = IdentityErrorResponse.model_validate_json(response.content).error.message
            except ValidationError:
                message = f"HTTP {response.status_code}"
            logger.error(f"Identity backend error {response.status_code}: {message}")
            raise IdentityBackendError(message, status_code=response.status_code)
        if model is None:
            return None
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            raise IdentityBackendError(f"Unexpected identity response: {e}") from e


class IdentitySessionStore:
    """The signed-in account, kept in memory and mirrored to the local store."""

    def __init__(self, store: LocalStore):
        self.store = store
        self._current: IdentitySession | None = store.load_identity_session()
        if self._current:
            logger.info(f"Loaded identity session for {self._current.uid}")

    @property
    def current(self) -> IdentitySession | None:
        return self._current

    def set(self, session: IdentitySession) -> None:
        self._current = session
        self.store.save_identity_session(session)

    def clear(self) -> None:
        self._current = None
        self.store.clear_identity_session()


class IdentityTokenProvider:
    """Mints identity tokens for the signed-in account."""

    def __init__(self, backend: IdentityBackend, sessions: IdentitySessionStore):
        self.backend = backend
        self.sessions = sessions

    async def __call__(self) -> IssuedToken:
        session = self.sessions.current
        if session is None:
            logger.error("No authenticated user found")
            raise AuthenticationRequiredError()

        try:
            refreshed = await asyncio.to_thread(self.backend.refresh, session.refresh_token)
        except (IdentityBackendError, requests.RequestException) as e:
            logger.error(f"Failed to get ID token: {e}")
            raise AuthenticationRequiredError(f"Failed to get ID token: {e}") from e

        # The backend may rotate the refresh token
        if refreshed.refresh_token and refreshed.refresh_token != session.refresh_token:
            self.sessions.set(replace(session, refresh_token=refreshed.refresh_token))

        return IssuedToken(value=refreshed.id_token, expires_in=refreshed.expires_in)
