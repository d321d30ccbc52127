"""Account flows: sign-up, sign-in, sign-out, password reset and email verification.

Credentials are checked by the identity backend; the FoodMap backend is then
asked to verify the resulting ID token and return its view of the account.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone

import requests

from .errors import (
    AuthenticationRequiredError,
    AuthError,
    AuthErrorKind,
    IdentityBackendError,
    NetworkError,
)
from .identity import IdentityBackend, IdentitySessionStore
from .local_store import IdentitySession, LocalStore
from .network_client import NetworkClient
from .schemas import (
    RegisterRequest,
    RegisterResponse,
    User,
    UserData,
    VerifyTokenRequest,
)
from .tokens import IssuedToken, TokenKind, TokenManager

logger = logging.getLogger(__name__)

REGISTER_ENDPOINT = "api/v1/auth/register"
VERIFY_TOKEN_ENDPOINT = "api/v1/auth/verify-token"


def username_from_email(email: str) -> str:
    """Derive the default username: the lower-cased local part of the email."""
    local_part = email.split("@", 1)[0]
    return (local_part or email).lower()


class AuthenticationService:
    """Sign users in and out and keep the cached user read model current."""

    def __init__(
        self,
        client: NetworkClient,
        identity: IdentityBackend,
        sessions: IdentitySessionStore,
        tokens: TokenManager,
        store: LocalStore,
    ):
        self.client = client
        self.identity = identity
        self.sessions = sessions
        self.tokens = tokens
        self.store = store
        self._current_user: User | None = None

    # =========================================================================
    # Sign-in / sign-up / sign-out
    # =========================================================================

    async def login(self, email: str, password: str, remember: bool = True) -> User:
        """Sign in and return the backend's view of the account.

        Args:
            email: Account email.
            password: Account password.
            remember: Save the credentials for auto-login.

        Raises:
            AuthError: If the identity backend rejects the credentials.
            NetworkError: If the FoodMap backend cannot verify the token.
        """
        try:
            auth = await asyncio.to_thread(self.identity.sign_in, email, password)
        except IdentityBackendError as e:
            logger.error(f"Identity sign-in failed: {e}")
            raise AuthError(AuthErrorKind.SIGN_IN, str(e)) from e
        except requests.RequestException as e:
            logger.error(f"Identity sign-in request failed: {e}")
            raise AuthError(AuthErrorKind.NETWORK, str(e)) from e

        self.sessions.set(
            IdentitySession(
                uid=auth.local_id,
                email=auth.email or email,
                refresh_token=auth.refresh_token,
                display_name=auth.display_name,
            )
        )
        # The sign-in response already carries a valid ID token
        self.tokens.cache(TokenKind.IDENTITY).prime(
            IssuedToken(value=auth.id_token, expires_in=auth.expires_in)
        )

        user_data: UserData = await self.client.post(
            VERIFY_TOKEN_ENDPOINT, VerifyTokenRequest(token=auth.id_token), UserData
        )

        now = datetime.now(timezone.utc)
        user = User(
            id=user_data.uid,
            email=user_data.email or "",
            display_name=user_data.display_name,
            last_active=now,
            join_date=now,
        )
        self.store.set_user_id(user.id)
        if remember:
            self.store.save_credentials(email, password)

        self._current_user = user
        logger.info(f"Signed in as {user.id}")
        return user

    async def sign_up(self, email: str, password: str, display_name: str | None = None) -> User:
        """Register with the FoodMap backend, then sign in."""
        request = RegisterRequest(
            email=email,
            password=password,
            username=username_from_email(email),
            display_name=display_name or "User",
        )
        response: RegisterResponse = await self.client.post(
            REGISTER_ENDPOINT, request, RegisterResponse
        )
        logger.info(f"Registered account {response.uid}")
        return await self.login(email, password)

    async def auto_login(self) -> User | None:
        """Sign in with saved credentials, if there are any."""
        credentials = self.store.load_credentials()
        if credentials is None:
            return None

        try:
            return await self.login(credentials.email, credentials.password)
        except AuthError as e:
            logger.warning(f"Auto-login failed: {e}")
            if e.kind is AuthErrorKind.SIGN_IN:
                self.store.clear_credentials()
            return None
        except NetworkError as e:
            logger.warning(f"Auto-login failed: {e}")
            return None

    def sign_out(self) -> None:
        """Forget the session, cached tokens and saved credentials."""
        try:
            self.tokens.clear()
            self.sessions.clear()
            self.store.clear_credentials()
        except Exception as e:
            logger.exception(f"Sign-out failed: {e}")
            raise AuthError(AuthErrorKind.SIGN_OUT, str(e)) from e
        self._current_user = None
        logger.info("Signed out")

    async def reset_password(self, email: str) -> None:
        try:
            await asyncio.to_thread(self.identity.send_password_reset, email)
        except IdentityBackendError as e:
            raise AuthError(AuthErrorKind.SERVER, str(e)) from e
        except requests.RequestException as e:
            raise AuthError(AuthErrorKind.NETWORK, str(e)) from e
        logger.info("Password reset email sent")

    # =========================================================================
    # Current user
    # =========================================================================

    def get_current_user(self) -> User | None:
        """Return the cached user, or a minimal one built from the stored session."""
        if self._current_user is not None:
            return self._current_user
        session = self.sessions.current
        if session is None:
            return None
        return User(id=session.uid, email=session.email or "", display_name=session.display_name)

    async def get_id_token(self) -> str:
        if self.sessions.current is None:
            raise AuthError(AuthErrorKind.USER_NOT_FOUND)
        try:
            return await self.tokens.get_valid_token(TokenKind.IDENTITY)
        except AuthenticationRequiredError as e:
            raise AuthError(AuthErrorKind.TOKEN, str(e)) from e

    async def update_display_name(self, display_name: str) -> User:
        id_token = await self.get_id_token()
        try:
            await asyncio.to_thread(self.identity.update_profile, id_token, display_name)
        except IdentityBackendError as e:
            raise AuthError(AuthErrorKind.SERVER, str(e)) from e
        except requests.RequestException as e:
            raise AuthError(AuthErrorKind.NETWORK, str(e)) from e

        self.sessions.set(replace(self.sessions.current, display_name=display_name))
        user = self.get_current_user().model_copy(update={"display_name": display_name})
        self._current_user = user
        return user

    # =========================================================================
    # Email verification
    # =========================================================================

    async def send_email_verification(self) -> None:
        id_token = await self.get_id_token()
        try:
            await asyncio.to_thread(self.identity.send_email_verification, id_token)
        except IdentityBackendError as e:
            raise AuthError(AuthErrorKind.VERIFICATION, str(e)) from e
        except requests.RequestException as e:
            raise AuthError(AuthErrorKind.NETWORK, str(e)) from e
        logger.info("Verification email sent")

    async def check_email_verification_status(self) -> bool:
        """Ask the identity backend whether the email is verified and update the cached user."""
        id_token = await self.get_id_token()
        try:
            account = await asyncio.to_thread(self.identity.lookup, id_token)
        except IdentityBackendError as e:
            raise AuthError(AuthErrorKind.VERIFICATION, str(e)) from e
        except requests.RequestException as e:
            raise AuthError(AuthErrorKind.NETWORK, str(e)) from e

        user = self.get_current_user()
        if user is not None:
            self._current_user = user.model_copy(update={"is_email_verified": account.email_verified})
        return account.email_verified
