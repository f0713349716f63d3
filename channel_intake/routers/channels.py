"""Endpoints used by the browser extension to submit and review channels."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from channel_intake.core.config import Settings
from channel_intake.dependencies import (
    get_bearer_token,
    get_channel_resolver,
    get_session,
    get_app_settings,
    require_caller,
)
from channel_intake.schema.channel import ChannelRecordResponse, CheckChannelRequest, MessageResponse
from channel_intake.services.channel_resolver import ChannelLookupError, ChannelResolver
from channel_intake.services.channel_store import list_history, record_channel
from channel_intake.services.identity import CallerIdentity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["channels"])

INTERNAL_ERROR = "Internal server error."
INVALID_URL = "Invalid YouTube URL or Channel ID could not be retrieved."


@router.post(
    "/checkChannel",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_200_OK: {"model": MessageResponse, "description": "Duplicate channel"}},
)
async def check_channel(
    payload: CheckChannelRequest,
    response: Response,
    caller: CallerIdentity = Depends(require_caller),
    token: str = Depends(get_bearer_token),
    resolver: ChannelResolver = Depends(get_channel_resolver),
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Resolve the submitted URL and store its channel unless already known."""

    logger.info("Request to check and insert channel from user: %s, URL: %s", caller.display_name, payload.url)

    try:
        channel_id = await resolver.resolve(
            payload.url, bearer_token=token if settings.youtube_forward_caller_token else None
        )
    except ChannelLookupError as exc:
        logger.exception("Error fetching channel ID from YouTube API")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from exc

    if not channel_id:
        logger.warning("Invalid YouTube URL or Channel ID could not be retrieved")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_URL,
        )

    try:
        inserted = await record_channel(session, channel_id=channel_id, created_by=caller.display_name)
    except SQLAlchemyError as exc:
        logger.exception("Error inserting channel ID %s", channel_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from exc

    if not inserted:
        logger.info("Duplicate channel ID found: %s", channel_id)
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message="Duplicate channel ID found.")

    logger.info("Channel ID %s inserted successfully by user: %s", channel_id, caller.display_name)
    return MessageResponse(message="Channel ID inserted successfully.")


@router.get("/influencerHistory", response_model=list[ChannelRecordResponse])
async def influencer_history(
    caller: CallerIdentity = Depends(require_caller),
    session: AsyncSession = Depends(get_session),
) -> list[ChannelRecordResponse]:
    """Return the channels the caller has submitted."""

    logger.info("Request to get influencer history for user: %s", caller.display_name)
    try:
        records = await list_history(session, caller.display_name)
    except SQLAlchemyError as exc:
        logger.exception("Error retrieving influencer history")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from exc

    logger.info("Influencer history retrieved for user: %s (%d records)", caller.display_name, len(records))
    return [ChannelRecordResponse.from_record(record) for record in records]
