"""Database models for the local client store."""

from .base import Base, TimestampMixin, normalize_email
from .app_settings import AppSetting
from .saved_credentials import SavedCredential
from .identity_session import IdentitySessionRecord

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "normalize_email",
    # Models
    "AppSetting",
    "SavedCredential",
    "IdentitySessionRecord",
]
