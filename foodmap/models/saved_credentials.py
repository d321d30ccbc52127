"""Saved sign-in credentials for auto-login."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class SavedCredential(Base, TimestampMixin):
    """Single-row table holding the email/password used for auto-login.

    The password is stored as given; protect the database file accordingly.
    """

    __tablename__ = "saved_credentials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password: Mapped[str] = mapped_column(String(1024), nullable=False)

    def __repr__(self) -> str:
        return f"<SavedCredential(id={self.id}, email={self.email!r})>"
