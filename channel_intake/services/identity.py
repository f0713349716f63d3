"""Verify Google ID tokens presented by the browser extension."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import cachecontrol
import requests
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

logger = logging.getLogger(__name__)


class IdentityVerificationError(ValueError):
    """Raised for a missing, malformed or unverifiable bearer credential."""


class IdentityProviderError(RuntimeError):
    """Raised when Google's token certificates cannot be fetched."""


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """The verified caller of a request."""

    display_name: str
    subject: str | None = None
    email: str | None = None


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""

    if not authorization:
        raise IdentityVerificationError("Authorization header is missing")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise IdentityVerificationError("Authorization header is malformed")
    return parts[1]


def identity_from_payload(payload: dict[str, Any]) -> CallerIdentity:
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise IdentityVerificationError("Token payload has no display name")
    return CallerIdentity(display_name=name, subject=payload.get("sub"), email=payload.get("email"))


def cached_google_request() -> google_requests.Request:
    """Transport whose certificate fetches honour Google's Cache-Control headers."""

    return google_requests.Request(session=cachecontrol.CacheControl(requests.Session()))


class GoogleIdentityVerifier:
    """Checks ID token signature, expiry and audience against Google's certs."""

    def __init__(self, client_id: str | None, request: google_requests.Request | None = None) -> None:
        self._client_id = client_id
        self._request = request or cached_google_request()

    async def verify(self, token: str) -> CallerIdentity:
        if not self._client_id:
            logger.error("Token verification requires APP_GOOGLE_CLIENT_ID")
            raise IdentityVerificationError("No audience configured")

        try:
            payload = await asyncio.to_thread(
                id_token.verify_oauth2_token, token, self._request, self._client_id
            )
        except google_exceptions.TransportError as exc:
            raise IdentityProviderError("Unable to fetch Google token certificates") from exc
        except (ValueError, google_exceptions.GoogleAuthError) as exc:
            raise IdentityVerificationError("Token verification failed") from exc

        identity = identity_from_payload(payload)
        logger.info("Google OAuth token verified for user: %s", identity.display_name)
        return identity
