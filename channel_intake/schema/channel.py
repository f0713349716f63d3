"""Pydantic models for the channel intake API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from channel_intake.db.models import ChannelRecord


class CheckChannelRequest(BaseModel):
    """Inbound payload from the extension."""

    url: str = Field(..., description="YouTube channel, custom, user or watch URL")


class MessageResponse(BaseModel):
    message: str


class ChannelRecordResponse(BaseModel):
    """A stored channel as returned by the history endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(alias="channelId")
    created_by: str = Field(alias="createdBy")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_record(cls, record: ChannelRecord) -> ChannelRecordResponse:
        return cls(channel_id=record.channel_id, created_by=record.created_by, created_at=record.created_at)
