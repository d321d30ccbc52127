"""Request/response DTOs for the backend auth endpoints."""

from .base import CamelModel


class RegisterRequest(CamelModel):
    email: str
    password: str
    username: str
    display_name: str


class RegisterResponse(CamelModel):
    uid: str
    username: str
    email: str | None = None
    display_name: str


class VerifyTokenRequest(CamelModel):
    token: str


class UserData(CamelModel):
    """Account data returned by ``api/v1/auth/verify-token``."""

    uid: str
    username: str
    email: str | None = None
    display_name: str


class LoginRequest(CamelModel):
    email: str
    password: str


class SignUpRequest(CamelModel):
    email: str
    password: str
    display_name: str | None = None


class PasswordResetRequest(CamelModel):
    email: str


class DisplayNameRequest(CamelModel):
    display_name: str


class VerificationResponse(CamelModel):
    success: bool


class VerificationStatusResponse(CamelModel):
    is_verified: bool
