import httpx
import pytest

from channel_intake.services import channel_resolver
from channel_intake.services.channel_resolver import ChannelLookupError, ChannelResolver

pytest_plugins = ("pytest_asyncio",)

API_BASE = "https://youtube.test/v3"


def _resolver(handler, *, api_key: str | None = "dummy-key") -> ChannelResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChannelResolver(client, api_key=api_key, api_base=API_BASE)


def _unexpected(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.youtube.com/channel/UC123", channel_resolver.UrlMatch("channel", "UC123")),
        ("https://m.youtube.com/channel/UC_a-b/videos", channel_resolver.UrlMatch("channel", "UC_a-b")),
        ("https://www.youtube.com/user/somebody", channel_resolver.UrlMatch("username", "somebody")),
        ("https://www.youtube.com/c/Custom_Name", channel_resolver.UrlMatch("username", "Custom_Name")),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=1", channel_resolver.UrlMatch("video", "dQw4w9WgXcQ")),
        ("https://example.com/not-youtube", None),
        ("https://www.youtube.com/@handle", None),
        ("https://example.com/channel/UC123", None),
    ],
)
def test_match_channel_url(url: str, expected) -> None:
    assert channel_resolver.match_channel_url(url) == expected


def test_match_prefers_channel_over_later_patterns() -> None:
    url = "https://www.youtube.com/channel/UCfirst?next=youtube.com/watch?v=abc"
    assert channel_resolver.match_channel_url(url) == channel_resolver.UrlMatch("channel", "UCfirst")


@pytest.mark.asyncio
async def test_resolve_channel_url_makes_no_request() -> None:
    resolver = _resolver(_unexpected, api_key=None)
    assert await resolver.resolve("https://www.youtube.com/channel/UC123") == "UC123"


@pytest.mark.asyncio
async def test_resolve_unknown_url_returns_none() -> None:
    resolver = _resolver(_unexpected)
    assert await resolver.resolve("https://example.com/not-youtube") is None


@pytest.mark.asyncio
async def test_resolve_username_queries_channels_endpoint() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": [{"id": "UCuser"}, {"id": "UCother"}]})

    resolver = _resolver(handler)
    assert await resolver.resolve("https://www.youtube.com/user/somebody") == "UCuser"

    (request,) = seen
    assert request.url.path == "/v3/channels"
    assert request.url.params["forUsername"] == "somebody"
    assert request.url.params["part"] == "id"
    assert request.url.params["key"] == "dummy-key"
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_resolve_custom_url_with_no_items_is_unresolved() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    resolver = _resolver(handler)
    assert await resolver.resolve("https://www.youtube.com/c/missing") is None


@pytest.mark.asyncio
async def test_resolve_video_uses_snippet_channel_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v3/videos"
        assert request.url.params["id"] == "vid123"
        assert request.url.params["part"] == "snippet"
        return httpx.Response(200, json={"items": [{"id": "vid123", "snippet": {"channelId": "UCvideo"}}]})

    resolver = _resolver(handler)
    assert await resolver.resolve("https://www.youtube.com/watch?v=vid123") == "UCvideo"


@pytest.mark.asyncio
async def test_resolve_forwards_bearer_token_when_given() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer caller-token"
        return httpx.Response(200, json={"items": [{"id": "UCuser"}]})

    resolver = _resolver(handler)
    assert await resolver.resolve("https://www.youtube.com/user/x", bearer_token="caller-token") == "UCuser"


@pytest.mark.asyncio
async def test_resolve_lookup_requires_api_key() -> None:
    resolver = _resolver(_unexpected, api_key=None)
    with pytest.raises(ChannelLookupError, match="requires APP_YOUTUBE_API_KEY"):
        await resolver.resolve("https://www.youtube.com/user/somebody")


@pytest.mark.asyncio
async def test_resolve_network_error_is_lookup_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    resolver = _resolver(handler)
    with pytest.raises(ChannelLookupError, match="Unable to contact YouTube Data API"):
        await resolver.resolve("https://www.youtube.com/watch?v=vid123")


@pytest.mark.asyncio
async def test_resolve_error_status_is_lookup_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"message": "quota"}})

    resolver = _resolver(handler)
    with pytest.raises(ChannelLookupError):
        await resolver.resolve("https://www.youtube.com/user/somebody")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"kind": "youtube#videoListResponse"}),
        httpx.Response(200, json={"items": [{"id": "vid123"}]}),
    ],
)
async def test_resolve_malformed_payload_is_lookup_error(response: httpx.Response) -> None:
    resolver = _resolver(lambda request: response)
    with pytest.raises(ChannelLookupError):
        await resolver.resolve("https://www.youtube.com/watch?v=vid123")
