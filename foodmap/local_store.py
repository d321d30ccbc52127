"""Client-side persistence: small flags, saved credentials and the identity session.

Everything here is local to one installation. The identity backend remains
the source of truth for accounts; this store only remembers enough to keep
a user signed in across restarts.
"""

import logging
import uuid
from dataclasses import dataclass

from .database import Database
from .models import AppSetting, IdentitySessionRecord, SavedCredential, normalize_email

logger = logging.getLogger(__name__)

USER_ID_KEY = "userId"
ONBOARDING_KEY = "hasCompletedOnboarding"


@dataclass(frozen=True)
class IdentitySession:
    """The signed-in account as far as the identity backend is concerned."""

    uid: str
    email: str | None
    refresh_token: str
    display_name: str | None = None


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str


class LocalStore:
    """Key-value flags and single-row records backed by the local database."""

    def __init__(self, database: Database):
        self.database = database

    # =========================================================================
    # Key-value flags
    # =========================================================================

    def get(self, key: str) -> str | None:
        with self.database.session() as db:
            row = db.get(AppSetting, key)
            return row.value if row else None

    def set(self, key: str, value: str | None) -> None:
        with self.database.session() as db:
            row = db.get(AppSetting, key)
            if not row:
                row = AppSetting(key=key)
                db.add(row)
            row.value = value

    def get_user_id(self) -> str:
        """Return the local user id, generating and persisting one on first use."""
        user_id = self.get(USER_ID_KEY)
        if not user_id:
            user_id = str(uuid.uuid4())
            self.set(USER_ID_KEY, user_id)
            logger.info(f"Generated local user id {user_id}")
        return user_id

    def set_user_id(self, user_id: str) -> None:
        self.set(USER_ID_KEY, user_id)

    def has_completed_onboarding(self) -> bool:
        return self.get(ONBOARDING_KEY) == "true"

    def set_onboarding_completed(self, completed: bool = True) -> None:
        self.set(ONBOARDING_KEY, "true" if completed else "false")

    # =========================================================================
    # Saved credentials
    # =========================================================================

    def save_credentials(self, email: str, password: str) -> None:
        """Remember the email/password pair for auto-login."""
        with self.database.session() as db:
            row = db.query(SavedCredential).first()
            if not row:
                row = SavedCredential()
                db.add(row)
            row.email = normalize_email(email)
            row.password = password
        logger.info("Saved credentials for auto-login")

    def load_credentials(self) -> Credentials | None:
        with self.database.session() as db:
            row = db.query(SavedCredential).first()
            if not row:
                return None
            return Credentials(email=row.email, password=row.password)

    def clear_credentials(self) -> None:
        with self.database.session() as db:
            db.query(SavedCredential).delete()

    # =========================================================================
    # Identity session
    # =========================================================================

    def load_identity_session(self) -> IdentitySession | None:
        with self.database.session() as db:
            row = db.query(IdentitySessionRecord).first()
            if not row or not row.refresh_token:
                return None
            return IdentitySession(
                uid=row.uid,
                email=row.email,
                refresh_token=row.refresh_token,
                display_name=row.display_name,
            )

    def save_identity_session(self, session: IdentitySession) -> None:
        with self.database.session() as db:
            row = db.query(IdentitySessionRecord).first()
            if not row:
                row = IdentitySessionRecord(uid=session.uid)
                db.add(row)
            row.uid = session.uid
            row.email = session.email
            row.display_name = session.display_name
            row.refresh_token = session.refresh_token

    def clear_identity_session(self) -> None:
        with self.database.session() as db:
            db.query(IdentitySessionRecord).delete()
