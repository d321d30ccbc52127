"""App attestation token provider.

Exchanges the configured debug token for a short-lived attestation token.
The token proves the calling application is genuine and is independent of
which user (if any) is signed in.
"""

import asyncio
import logging
import re

import requests

from .config import Settings
from .errors import AttestationError
from .tokens import IssuedToken

logger = logging.getLogger(__name__)

ATTESTATION_TIMEOUT = 10

_TTL_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)s?\s*$")


def parse_ttl(ttl) -> float | None:
    """Parse a protobuf-style duration such as "3600s" into seconds.

    Returns None when the value is missing or unparseable.
    """
    if ttl is None:
        return None
    if isinstance(ttl, (int, float)):
        return float(ttl)
    match = _TTL_PATTERN.match(str(ttl))
    if not match:
        return None
    return float(match.group(1))


class AttestationProvider:
    """Mints attestation tokens from the attestation exchange endpoint."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.exchange_url = settings.attestation_exchange_url
        self.debug_token = settings.attestation_debug_token
        self.session = session or requests.Session()

    def mint(self) -> IssuedToken:
        """Exchange the debug token for an attestation token (blocking)."""
        try:
            response = self.session.post(
                self.exchange_url,
                json={"debugToken": self.debug_token},
                timeout=ATTESTATION_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to get attestation token: {e}")
            raise AttestationError(f"Failed to get attestation token: {e}") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            logger.error("Attestation token is missing from the response")
            raise AttestationError("Attestation token is missing from the response")

        return IssuedToken(value=token, expires_in=parse_ttl(data.get("ttl")))

    async def __call__(self) -> IssuedToken:
        return await asyncio.to_thread(self.mint)
