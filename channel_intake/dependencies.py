"""FastAPI dependency providers backed by objects built at startup."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from channel_intake.core.config import Settings
from channel_intake.services.channel_resolver import ChannelResolver
from channel_intake.services.identity import (
    CallerIdentity,
    GoogleIdentityVerifier,
    IdentityProviderError,
    IdentityVerificationError,
    parse_bearer,
)
from channel_intake.services.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a database session from the application's pool."""

    async with request.app.state.session_factory() as session:
        yield session


def get_channel_resolver(request: Request) -> ChannelResolver:
    return request.app.state.channel_resolver


def get_identity_verifier(request: Request) -> GoogleIdentityVerifier:
    return request.app.state.identity_verifier


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.rate_limiter


def client_address(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Address used as the rate limit key.

    ``X-Forwarded-For`` is client controlled, so it is only read when the
    service runs behind a proxy that sets it.
    """

    if trust_forwarded_for:
        forwarded = (request.headers.get("x-forwarded-for") or "").strip()
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_app_settings),
) -> None:
    address = client_address(request, trust_forwarded_for=settings.trust_forwarded_for)
    if not limiter.hit(address):
        logger.warning("Rate limit exceeded for %s", address)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later.",
        )


def get_bearer_token(request: Request) -> str:
    try:
        return parse_bearer(request.headers.get("Authorization"))
    except IdentityVerificationError as exc:
        logger.warning("Rejected request: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


async def require_caller(
    token: str = Depends(get_bearer_token),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier),
) -> CallerIdentity:
    """Verify the bearer token and return the caller it belongs to."""

    try:
        return await verifier.verify(token)
    except IdentityVerificationError as exc:
        logger.warning("Token verification error: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized") from exc
    except IdentityProviderError as exc:
        logger.exception("Identity provider unavailable")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error."
        ) from exc
