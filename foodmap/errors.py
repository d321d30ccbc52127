"""Error taxonomy for backend calls.

Every failure the request executor can produce is a ``NetworkError``. Each
carries a ``user_message`` that the service surface shows as-is, so callers
only need to catch the base class unless they want to tell the cases apart.
"""

import enum


class NetworkError(Exception):
    """Base class for request executor failures."""

    user_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class InvalidURLError(NetworkError):
    """Raised when a request URL cannot be built."""

    user_message = "Invalid URL"


class InvalidResponseError(NetworkError):
    """Raised when the transport returns something that is not an HTTP response."""

    user_message = "Invalid response from server"


class HTTPStatusError(NetworkError):
    """Raised for a non-2xx response."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error: {status_code}")

    @property
    def user_message(self) -> str:
        return f"HTTP error: {self.status_code}"


class TokenExpiredError(HTTPStatusError):
    """Raised for a 401 response."""

    def __init__(self, body: str = ""):
        super().__init__(401, body)

    @property
    def user_message(self) -> str:
        return "Authentication token expired, please login again"


class AccessDeniedError(HTTPStatusError):
    """Raised for a 403 response, usually a rejected attestation token."""

    def __init__(self, body: str = ""):
        super().__init__(403, body)

    @property
    def user_message(self) -> str:
        return "App verification failed - please try again later"


class EncodingError(NetworkError):
    """Raised when a request body cannot be serialized to JSON."""

    user_message = "Could not encode request"

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Could not encode request: {cause}")


class DecodingError(NetworkError):
    """Raised when a 2xx response body does not match the expected shape."""

    user_message = "Could not process data from server"

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Could not decode response: {cause}")


class UnknownNetworkError(NetworkError):
    """Raised when no response was received at all."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(str(cause))

    @property
    def user_message(self) -> str:
        return str(self.cause) or "The network connection failed"


class AuthenticationRequiredError(NetworkError):
    """Raised when no identity token can be minted."""

    user_message = "Authentication is required"


class AttestationError(NetworkError):
    """Raised when no attestation token can be minted."""

    user_message = "App verification failed - please try again later"


# =============================================================================
# Authentication service errors
# =============================================================================


class AuthErrorKind(enum.Enum):
    """What part of the account flow failed."""

    SIGN_IN = "sign_in"
    SIGN_UP = "sign_up"
    SIGN_OUT = "sign_out"
    USER_NOT_FOUND = "user_not_found"
    TOKEN = "token"
    SERVER = "server"
    NETWORK = "network"
    VERIFICATION = "verification"


AUTH_ERROR_MESSAGES = {
    AuthErrorKind.SIGN_IN: "Could not sign in. Check your email and password.",
    AuthErrorKind.SIGN_UP: "Could not create the account.",
    AuthErrorKind.SIGN_OUT: "Could not sign out.",
    AuthErrorKind.USER_NOT_FOUND: "No signed-in user.",
    AuthErrorKind.TOKEN: "Could not obtain an authentication token.",
    AuthErrorKind.SERVER: "The server rejected the request.",
    AuthErrorKind.NETWORK: "The network connection failed.",
    AuthErrorKind.VERIFICATION: "Could not verify the email address.",
}


class AuthError(Exception):
    """Raised by the authentication service."""

    def __init__(self, kind: AuthErrorKind, detail: str | None = None):
        self.kind = kind
        self.detail = detail
        super().__init__(detail or AUTH_ERROR_MESSAGES[kind])

    @property
    def user_message(self) -> str:
        if self.kind is AuthErrorKind.SERVER and self.detail:
            return self.detail
        return AUTH_ERROR_MESSAGES[self.kind]


class IdentityBackendError(Exception):
    """Raised when the identity backend answers with an error payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class NoSuggestionsError(Exception):
    """Raised when the suggestion backend returns no choices."""

    pass
