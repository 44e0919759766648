import asyncio

import httpx
import pytest

from giligili.core.retry import RetryConfig
from giligili.core.twitch_client import TwitchClient, TwitchError
from giligili.db.schemas import ItemType


def make_client(handler, max_attempts: int = 2) -> TwitchClient:
    client = TwitchClient(transport=httpx.MockTransport(handler))
    client.client_id = "test-client"
    client.token = "test-token"
    client.retry_config = RetryConfig(max_attempts=max_attempts, base_delay=0, jitter=0)
    return client


def call(client: TwitchClient, method: str, *args):
    async def runner():
        try:
            return await getattr(client, method)(*args)
        finally:
            await client.close()

    return asyncio.run(runner())


def test_top_games_sends_credentials_and_sizes_box_art():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["first"] = request.url.params["first"]
        seen["client_id"] = request.headers["Client-Id"]
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"data": [
            {"id": "509658", "name": "Just Chatting",
             "box_art_url": "https://cdn/509658-{width}x{height}.jpg"},
            {"id": "21779", "name": "League of Legends", "box_art_url": ""},
        ]})

    games = call(make_client(handler), "top_games", 2)

    assert seen == {
        "path": "/helix/games/top",
        "first": "2",
        "client_id": "test-client",
        "auth": "Bearer test-token",
    }
    assert [g.id for g in games] == ["509658", "21779"]
    assert games[0].box_art_url == "https://cdn/509658-285x380.jpg"


def test_search_game_returns_none_when_unknown():
    def handler(request):
        assert request.url.params["name"] == "Nope"
        return httpx.Response(200, json={"data": []})

    assert call(make_client(handler), "search_game", "Nope") is None


def test_stream_items_get_channel_url_and_queried_game():
    def handler(request):
        assert request.url.path == "/helix/streams"
        assert request.url.params["game_id"] == "33214"
        return httpx.Response(200, json={"data": [{
            "id": "s1",
            "user_login": "ninja",
            "user_name": "Ninja",
            "title": "Fortnite with friends",
            "thumbnail_url": "https://cdn/live_user_ninja-{width}x{height}.jpg",
        }]})

    items = call(make_client(handler), "search_by_type", "33214", ItemType.STREAM, 10)

    assert len(items) == 1
    stream = items[0]
    assert stream.url == "https://www.twitch.tv/ninja"
    assert stream.broadcaster_name == "Ninja"
    assert stream.game_id == "33214"
    assert stream.item_type == ItemType.STREAM
    assert stream.thumbnail_url == "https://cdn/live_user_ninja-320x180.jpg"


def test_video_items_keep_their_url_and_percent_thumbnails():
    def handler(request):
        assert request.url.path == "/helix/videos"
        return httpx.Response(200, json={"data": [{
            "id": "v1",
            "user_name": "Shroud",
            "title": "VOD",
            "url": "https://www.twitch.tv/videos/v1",
            "thumbnail_url": "https://cdn/v1-%{width}x%{height}.jpg",
        }]})

    (video,) = call(make_client(handler), "search_by_type", "g1", ItemType.VIDEO, 5)

    assert video.url == "https://www.twitch.tv/videos/v1"
    assert video.thumbnail_url == "https://cdn/v1-320x180.jpg"
    assert video.game_id == "g1"


def test_search_items_covers_every_type():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json={"data": [{"id": request.url.path}]})

    items = call(make_client(handler), "search_items", "g1", 3)

    assert set(items) == {"STREAM", "VIDEO", "CLIP"}
    assert sorted(paths) == ["/helix/clips", "/helix/streams", "/helix/videos"]


def test_server_errors_are_retried():
    attempts = []

    def handler(request):
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"data": [{"id": "c1", "url": "https://clips/c1"}]})

    items = call(make_client(handler), "search_by_type", "g1", ItemType.CLIP, 1)

    assert len(attempts) == 2
    assert items[0].id == "c1"


def test_client_errors_are_not_retried_and_raise_twitch_error():
    attempts = []

    def handler(request):
        attempts.append(1)
        return httpx.Response(401, json={"message": "invalid token"})

    with pytest.raises(TwitchError):
        call(make_client(handler, max_attempts=3), "top_games", 3)
    assert len(attempts) == 1


def test_network_errors_raise_twitch_error_after_retries():
    attempts = []

    def handler(request):
        attempts.append(1)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TwitchError):
        call(make_client(handler, max_attempts=2), "top_games", 3)
    assert len(attempts) == 2


def test_malformed_payload_raises_twitch_error():
    def handler(request):
        return httpx.Response(200, json={"data": [{"title": "no id"}]})

    with pytest.raises(TwitchError):
        call(make_client(handler), "search_by_type", "g1", ItemType.CLIP, 1)

    def no_data(request):
        return httpx.Response(200, json={"error": "nope"})

    with pytest.raises(TwitchError):
        call(make_client(no_data), "top_games", 1)
