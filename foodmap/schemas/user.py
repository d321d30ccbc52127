"""User read model."""

from datetime import datetime, timezone

from pydantic import ConfigDict, Field

from .base import CamelModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(CamelModel):
    """Locally cached view of an account held by the identity backend.

    ``id`` is stable for the lifetime of the account. Instances are frozen;
    refreshes replace the whole object via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    display_name: str | None = None
    is_email_verified: bool = False
    profile_image_url: str | None = None
    friends: list[str] = Field(default_factory=list)
    favorite_restaurants: list[str] = Field(default_factory=list)
    last_active: datetime | None = None
    join_date: datetime = Field(default_factory=_utcnow)
