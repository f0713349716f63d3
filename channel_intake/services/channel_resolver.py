"""Resolve YouTube URLs submitted by the extension into canonical channel IDs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"

# Checked in order; the first pattern that matches decides how the URL resolves.
CHANNEL_URL_REGEX = re.compile(r"youtube\.com/channel/([a-zA-Z0-9_-]+)")
USERNAME_URL_REGEX = re.compile(r"youtube\.com/(?:user|c)/([a-zA-Z0-9_-]+)")
VIDEO_URL_REGEX = re.compile(r"youtube\.com/watch\?v=([a-zA-Z0-9_-]+)")


class ChannelLookupError(RuntimeError):
    """Raised when the YouTube Data API cannot be queried or returns garbage."""


@dataclass(frozen=True, slots=True)
class UrlMatch:
    """The URL form that matched and the identifier captured from it."""

    kind: str
    value: str


def match_channel_url(url: str) -> UrlMatch | None:
    """Classify a URL as a channel, username/custom or video link."""

    if match := CHANNEL_URL_REGEX.search(url):
        return UrlMatch("channel", match.group(1))
    if match := USERNAME_URL_REGEX.search(url):
        return UrlMatch("username", match.group(1))
    if match := VIDEO_URL_REGEX.search(url):
        return UrlMatch("video", match.group(1))
    return None


class ChannelResolver:
    """Turns a YouTube URL into a channel ID, querying the Data API when needed.

    ``resolve`` returns ``None`` when the URL is not a recognised YouTube link or
    the API has no matching item. Failures talking to the API raise
    :class:`ChannelLookupError` instead so callers can tell the two apart.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        api_base: str = YOUTUBE_API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    async def resolve(self, url: str, *, bearer_token: str | None = None) -> str | None:
        matched = match_channel_url(url)
        if matched is None:
            logger.info("URL does not match a known YouTube pattern: %s", url)
            return None

        if matched.kind == "channel":
            logger.info("Extracted channel ID from URL: %s", matched.value)
            return matched.value

        if matched.kind == "username":
            logger.info("Fetching channel ID for username: %s", matched.value)
            items = await self._fetch_items(
                "channels", {"part": "id", "forUsername": matched.value}, bearer_token
            )
            channel_id = _first_field(items, "id")
        else:
            logger.info("Fetching channel ID for video ID: %s", matched.value)
            items = await self._fetch_items(
                "videos", {"part": "snippet", "id": matched.value}, bearer_token
            )
            channel_id = _first_field(items, "snippet", "channelId")

        if channel_id is None:
            logger.info("YouTube Data API returned no items for %s %s", matched.kind, matched.value)
        else:
            logger.info("Fetched channel ID from YouTube Data API: %s", channel_id)
        return channel_id

    async def _fetch_items(
        self, resource: str, params: dict[str, str], bearer_token: str | None
    ) -> list[Any]:
        if not self._api_key:
            raise ChannelLookupError("Channel lookup requires APP_YOUTUBE_API_KEY")

        headers = {"Authorization": f"Bearer {bearer_token}"} if bearer_token else None
        try:
            response = await self._client.get(
                f"{self._api_base}/{resource}",
                params={**params, "key": self._api_key},
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ChannelLookupError("Unable to contact YouTube Data API") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ChannelLookupError("Invalid response from YouTube Data API") from exc

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ChannelLookupError("YouTube Data API response has no items list")
        return items


def _first_field(items: list[Any], *path: str) -> str | None:
    """Return ``items[0][path...]``, or ``None`` for an empty collection."""

    if not items:
        return None

    value: Any = items[0]
    for key in path:
        if not isinstance(value, dict) or key not in value:
            raise ChannelLookupError(f"YouTube Data API item is missing {'.'.join(path)}")
        value = value[key]
    if not isinstance(value, str) or not value:
        raise ChannelLookupError(f"YouTube Data API item has invalid {'.'.join(path)}")
    return value
