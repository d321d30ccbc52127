"""DTOs for the identity toolkit REST API."""

from pydantic import BaseModel, ConfigDict, Field

from .base import CamelModel


class IdentityAuthResponse(CamelModel):
    """Response of accounts:signUp and accounts:signInWithPassword."""

    local_id: str
    email: str | None = None
    display_name: str | None = None
    id_token: str
    refresh_token: str
    expires_in: int | None = None


class TokenRefreshResponse(BaseModel):
    """Response of the secure token endpoint (snake_case on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    id_token: str
    refresh_token: str
    expires_in: int | None = None
    user_id: str | None = None


class IdentityAccount(CamelModel):
    local_id: str
    email: str | None = None
    email_verified: bool = False
    display_name: str | None = None
    photo_url: str | None = None


class AccountLookupResponse(CamelModel):
    users: list[IdentityAccount] = Field(default_factory=list)


class IdentityErrorBody(BaseModel):
    code: int | None = None
    message: str = "UNKNOWN_ERROR"


class IdentityErrorResponse(BaseModel):
    error: IdentityErrorBody
