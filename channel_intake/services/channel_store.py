"""Persistence helpers for submitted channels and their submitters."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from channel_intake.db.models import ChannelRecord

logger = logging.getLogger(__name__)


async def channel_exists(session: AsyncSession, channel_id: str) -> bool:
    """Return True when a record for ``channel_id`` is already stored."""

    found = await session.scalar(
        select(ChannelRecord.id).where(ChannelRecord.channel_id == channel_id).limit(1)
    )
    return found is not None


async def insert_channel(session: AsyncSession, channel_id: str, created_by: str) -> ChannelRecord:
    """Add a new record and flush it; the unique constraint rejects duplicates."""

    record = ChannelRecord(channel_id=channel_id, created_by=created_by)
    session.add(record)
    await session.flush()
    return record


async def record_channel(session: AsyncSession, *, channel_id: str, created_by: str) -> bool:
    """Store ``channel_id`` unless it is already known; returns True when inserted.

    The existence check and the insert are separate statements, so two requests
    can both pass the check. The loser of that race hits the unique constraint
    and is reported as a duplicate after its transaction is rolled back.
    """

    if await channel_exists(session, channel_id):
        return False

    try:
        await insert_channel(session, channel_id, created_by)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info("Concurrent insert detected for channel %s", channel_id)
        return False
    return True


async def list_history(session: AsyncSession, created_by: str) -> Sequence[ChannelRecord]:
    """Return every record submitted by ``created_by`` in insertion order."""

    result = await session.scalars(
        select(ChannelRecord).where(ChannelRecord.created_by == created_by).order_by(ChannelRecord.id)
    )
    return list(result)
