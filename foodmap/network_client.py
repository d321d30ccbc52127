"""Authenticated JSON-over-HTTP client for the FoodMap backend.

Attaches the identity token (Bearer) and the attestation token to requests,
classifies failures into the ``errors`` taxonomy and retries exactly once
when the backend rejects a token with 401/403. Requests run on a
``requests.Session`` in a worker thread so callers can simply await them.
"""

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any
from urllib.parse import urlsplit

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import (
    AccessDeniedError,
    DecodingError,
    EncodingError,
    HTTPStatusError,
    InvalidResponseError,
    InvalidURLError,
    TokenExpiredError,
    UnknownNetworkError,
)
from .tokens import TokenKind, TokenManager

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_ATTESTATION_HEADER = "X-Firebase-AppCheck"


@lru_cache(maxsize=None)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _redact(token: str) -> str:
    return f"{token[:15]}..."


class NetworkClient:
    """Issue GET/POST requests against the backend with token handling."""

    def __init__(
        self,
        base_url: str,
        tokens: TokenManager,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        attestation_header: str = DEFAULT_ATTESTATION_HEADER,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens
        self.session = session or requests.Session()
        self.timeout = timeout
        self.attestation_header = attestation_header
        logger.info(f"NetworkClient initialized with base URL: {self.base_url}")

    # =========================================================================
    # Public API
    # =========================================================================

    async def get(
        self,
        endpoint: str,
        response_type: Any = None,
        *,
        requires_auth: bool = False,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await self.request(
            "GET", endpoint, response_type=response_type, requires_auth=requires_auth, params=params
        )

    async def post(
        self,
        endpoint: str,
        body: Any = None,
        response_type: Any = None,
        *,
        requires_auth: bool = False,
    ) -> Any:
        return await self.request(
            "POST", endpoint, body=body, response_type=response_type, requires_auth=requires_auth
        )

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
        response_type: Any = None,
        requires_auth: bool = False,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and decode the response.

        Args:
            method: HTTP method.
            endpoint: Path relative to the base URL.
            body: JSON-serializable object or pydantic model; None for no body.
            response_type: Type the 2xx body is validated against. None returns
                the parsed JSON as-is.
            requires_auth: Attach the signed-in user's identity token.
            params: Query string parameters.

        Returns:
            The decoded response body.

        Raises:
            NetworkError: Any of the taxonomy in ``errors``.
        """
        url = self._build_url(endpoint)
        data = self._encode_body(body)

        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        headers.update(await self._token_headers(requires_auth))

        try:
            response = await self._send(method, url, headers, data, params)
        except (TokenExpiredError, AccessDeniedError) as e:
            kind = self._retry_kind(e, requires_auth)
            if kind is None:
                raise
            logger.warning(
                f"{method} {url} rejected with {e.status_code}, refreshing {kind.value} token and retrying"
            )
            self.tokens.invalidate(kind)
            token = await self.tokens.refresh(kind)
            headers.update(self._header_for(kind, token))
            response = await self._send(method, url, headers, data, params)

        return self._decode(response, response_type)

    def close(self) -> None:
        self.session.close()

    # =========================================================================
    # Request building
    # =========================================================================

    def _build_url(self, endpoint: str) -> str:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            logger.error(f"Invalid URL: {url}")
            raise InvalidURLError(f"Invalid URL: {url}")
        return url

    @staticmethod
    def _encode_body(body: Any) -> bytes | None:
        if body is None:
            return None
        try:
            if isinstance(body, BaseModel):
                payload = body.model_dump(mode="json", by_alias=True, exclude_none=True)
            else:
                payload = body
            return json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            logger.error(f"Error encoding request body: {e}")
            raise EncodingError(e) from e

    async def _token_headers(self, requires_auth: bool) -> dict[str, str]:
        headers = {}
        if requires_auth:
            token = await self.tokens.get_valid_token(TokenKind.IDENTITY)
            headers.update(self._header_for(TokenKind.IDENTITY, token))
        # Attestation travels on every request, signed in or not
        if self.tokens.supports(TokenKind.ATTESTATION):
            token = await self.tokens.get_valid_token(TokenKind.ATTESTATION)
            headers.update(self._header_for(TokenKind.ATTESTATION, token))
        return headers

    def _header_for(self, kind: TokenKind, token: str) -> dict[str, str]:
        logger.debug(f"Attaching {kind.value} token {_redact(token)}")
        if kind is TokenKind.IDENTITY:
            return {"Authorization": f"Bearer {token}"}
        return {self.attestation_header: token}

    def _retry_kind(self, error: HTTPStatusError, requires_auth: bool) -> TokenKind | None:
        """Pick the token to refresh after a 401/403, or None to give up."""
        if requires_auth and isinstance(error, TokenExpiredError):
            return TokenKind.IDENTITY
        # 403 anywhere, or 401 on an endpoint that carries no identity token
        if self.tokens.supports(TokenKind.ATTESTATION):
            return TokenKind.ATTESTATION
        return None

    # =========================================================================
    # Transport
    # =========================================================================

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        data: bytes | None,
        params: dict[str, Any] | None,
    ) -> requests.Response:
        logger.info(f"{method} request to: {url}")
        try:
            response = await asyncio.to_thread(
                self.session.request,
                method,
                url,
                headers=dict(headers),
                data=data,
                params=params,
                timeout=self.timeout,
            )
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            raise InvalidURLError(str(e)) from e
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise UnknownNetworkError(e) from e

        status = getattr(response, "status_code", None)
        if not isinstance(status, int):
            logger.error(f"Invalid response type from {url}")
            raise InvalidResponseError()

        logger.info(f"Response status code: {status}")
        if 200 <= status <= 299:
            return response

        # Truncate to avoid leaking large bodies into logs
        body = (response.text or "")[:200]
        if status == 401:
            logger.error("Authentication required or token expired")
            raise TokenExpiredError(body)
        if status == 403:
            logger.error("Attestation or authorization rejected")
            raise AccessDeniedError(body)
        logger.error(f"HTTP error: {status}: {body}")
        raise HTTPStatusError(status, body)

    @staticmethod
    def _decode(response: requests.Response, response_type: Any) -> Any:
        content = response.content
        if response_type is None:
            if not content:
                return None
            try:
                return json.loads(content)
            except ValueError as e:
                logger.error(f"Decoding error: {e}")
                raise DecodingError(e) from e
        try:
            return _adapter(response_type).validate_json(content)
        except ValidationError as e:
            logger.error(f"Decoding error: {e}")
            raise DecodingError(e) from e
