"""
Unit Tests for the X Tools

Each tool is exercised through execute() against a mocked XApi client.
"""

import json

import pytest

from core.errors import XApiError
from core.models import PostedTweet, PublicMetrics, RateLimit, XUser
from core.x_client import USER_INFO_FIELDS
from tools.x_tools import (
    GetHomeTimelineTool,
    GetUserInfoTool,
    GetUserTweetsTool,
    LikeTweetTool,
    PostTweetTool,
    RetweetTool,
    SearchTweetsTool,
)
from tests.conftest import parse, rate_limit_error


def assert_mirrors(response):
    """The JSON text and the structured content carry the same payload."""
    assert response.is_error is False
    assert json.loads(response.text) == response.structured_content


# ============================================================================
# post_tweet
# ============================================================================

class TestPostTweetTool:
    """Test post_tweet."""

    def test_contract(self, x_client):
        tool = PostTweetTool(x_client)
        assert tool.name == "post_tweet"
        assert tool.description == "Posts a tweet on behalf of the authenticated user."
        assert set(tool.parameters) == {"text", "image_path", "video_path"}
        assert set(tool.output_json_schema()["properties"]) == {"success", "tweet_id", "text"}

    @pytest.mark.asyncio
    async def test_posts_text(self, x_client):
        x_client.post_tweet.return_value = PostedTweet(id="1234567890", text="Hello, World!")

        response = await PostTweetTool(x_client).execute(text="Hello, World!")

        x_client.post_tweet.assert_awaited_once_with("Hello, World!", media_ids=None)
        assert_mirrors(response)
        assert parse(response) == {"success": True, "tweet_id": "1234567890", "text": "Hello, World!"}

    @pytest.mark.asyncio
    async def test_posts_with_image(self, x_client, tmp_path):
        image = tmp_path / "photo.jpg"
        image.write_bytes(b"jpeg bytes")
        x_client.upload_media.return_value = "media-1"
        x_client.post_tweet.return_value = PostedTweet(id="1", text="Look")

        response = await PostTweetTool(x_client).execute(text="Look", image_path=str(image))

        x_client.upload_media.assert_awaited_once_with(b"jpeg bytes", "image/jpeg")
        x_client.post_tweet.assert_awaited_once_with("Look", media_ids=["media-1"])
        assert parse(response)["tweet_id"] == "1"

    @pytest.mark.asyncio
    async def test_posts_with_video(self, x_client, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"mp4 bytes")
        x_client.upload_media.return_value = "media-2"
        x_client.post_tweet.return_value = PostedTweet(id="2", text="Watch")

        await PostTweetTool(x_client).execute(text="Watch", video_path=str(video))

        x_client.upload_media.assert_awaited_once_with(b"mp4 bytes", "video/mp4", long_video=False)
        x_client.post_tweet.assert_awaited_once_with("Watch", media_ids=["media-2"])

    @pytest.mark.asyncio
    async def test_image_and_video_rejected_before_any_call(self, x_client):
        response = await PostTweetTool(x_client).execute(
            text="Both", image_path="/tmp/a.png", video_path="/tmp/b.mp4"
        )

        assert response.is_error is True
        parsed = parse(response)
        assert parsed["success"] is False
        assert "Failed to post tweet" in parsed["error"]
        assert "Cannot attach both image and video" in parsed["error"]
        x_client.upload_media.assert_not_awaited()
        x_client.post_tweet.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_image_file(self, x_client, tmp_path):
        response = await PostTweetTool(x_client).execute(
            text="Hi", image_path=str(tmp_path / "missing.png")
        )

        parsed = parse(response)
        assert parsed["error"] == "Failed to post tweet: File not found: missing.png"
        x_client.post_tweet.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_failure(self, x_client):
        x_client.post_tweet.side_effect = Exception("API rate limit exceeded")

        response = await PostTweetTool(x_client).execute(text="This will fail")

        assert response.is_error is True
        parsed = parse(response)
        assert parsed["error"] == "Failed to post tweet: API rate limit exceeded"
        assert len(parsed["error_id"]) == 8

    @pytest.mark.asyncio
    async def test_rate_limited(self, x_client):
        x_client.post_tweet.side_effect = XApiError(
            "429 Too Many Requests",
            code=429,
            rate_limit_error=True,
            rate_limit=RateLimit(limit=50, remaining=0, reset=2_000_000_000),
        )

        parsed = parse(await PostTweetTool(x_client).execute(text="Hi"))

        assert parsed["error_type"] == "RATE_LIMIT_EXCEEDED"
        assert parsed["error"] == "Failed to post tweet"
        assert parsed["details"]["rate_limit"]["limit"] == 50
        assert "Please retry in" in parsed["details"]["message"]


# ============================================================================
# get_home_timeline
# ============================================================================

class TestGetHomeTimelineTool:
    """Test get_home_timeline."""

    def test_contract(self, x_client):
        tool = GetHomeTimelineTool(x_client)
        assert tool.name == "get_home_timeline"
        assert tool.description == "Retrieves the authenticated user's home timeline."
        assert list(tool.parameters) == ["count"]

    @pytest.mark.asyncio
    async def test_default_count(self, x_client, sample_tweets):
        x_client.get_home_timeline.return_value = sample_tweets

        response = await GetHomeTimelineTool(x_client).execute()

        x_client.get_home_timeline.assert_awaited_once_with(10)
        assert_mirrors(response)
        parsed = parse(response)
        assert parsed["count"] == 2
        assert parsed["tweets"] == [
            {"id": "1", "text": "First tweet", "created_at": "2024-01-01T00:00:00.000Z"},
            {"id": "2", "text": "Second tweet"},
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested, sent", [(1, 1), (50, 50), (100, 100), (150, 100), (10_000, 100)])
    async def test_count_is_capped(self, x_client, requested, sent):
        x_client.get_home_timeline.return_value = []

        await GetHomeTimelineTool(x_client).execute(count=requested)

        x_client.get_home_timeline.assert_awaited_once_with(sent)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page", [None, []])
    async def test_empty_timeline(self, x_client, page):
        x_client.get_home_timeline.return_value = page

        parsed = parse(await GetHomeTimelineTool(x_client).execute())

        assert parsed == {"success": True, "count": 0, "tweets": []}

    @pytest.mark.asyncio
    async def test_api_failure(self, x_client):
        x_client.get_home_timeline.side_effect = XApiError("401 Unauthorized", code=401)

        parsed = parse(await GetHomeTimelineTool(x_client).execute())

        assert parsed["error"] == "Failed to fetch home timeline: 401 Unauthorized"
        assert "error_type" not in parsed


# ============================================================================
# get_user_tweets
# ============================================================================

class TestGetUserTweetsTool:
    """Test get_user_tweets."""

    @pytest.mark.asyncio
    async def test_resolves_user_then_fetches(self, x_client, sample_tweets):
        x_client.get_user_by_username.return_value = XUser(id="777", username="jack")
        x_client.get_user_tweets.return_value = sample_tweets

        response = await GetUserTweetsTool(x_client).execute(username="jack", count=5)

        x_client.get_user_by_username.assert_awaited_once_with("jack")
        x_client.get_user_tweets.assert_awaited_once_with("777", 5)
        assert_mirrors(response)
        parsed = parse(response)
        assert parsed["username"] == "jack"
        assert parsed["count"] == 2

    @pytest.mark.asyncio
    async def test_count_clamped(self, x_client):
        x_client.get_user_by_username.return_value = XUser(id="777", username="jack")
        x_client.get_user_tweets.return_value = []

        await GetUserTweetsTool(x_client).execute(username="jack", count=500)

        x_client.get_user_tweets.assert_awaited_once_with("777", 100)

    @pytest.mark.asyncio
    async def test_user_not_found(self, x_client):
        x_client.get_user_by_username.return_value = None

        response = await GetUserTweetsTool(x_client).execute(username="ghost")

        assert response.is_error is True
        parsed = parse(response)
        assert "Failed to fetch user tweets" in parsed["error"]
        assert "User @ghost was not found" in parsed["error"]
        x_client.get_user_tweets.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_tweets(self, x_client):
        x_client.get_user_by_username.return_value = XUser(id="777", username="quiet")
        x_client.get_user_tweets.return_value = None

        parsed = parse(await GetUserTweetsTool(x_client).execute(username="quiet"))

        assert parsed == {"success": True, "username": "quiet", "count": 0, "tweets": []}

    @pytest.mark.asyncio
    async def test_rate_limited(self, x_client):
        x_client.get_user_by_username.side_effect = XApiError("429", code=429)

        parsed = parse(await GetUserTweetsTool(x_client).execute(username="jack"))

        assert parsed["error_type"] == "RATE_LIMIT_EXCEEDED"
        assert parsed["error"] == "Failed to fetch user tweets"
        assert "rate_limit" not in parsed["details"]


# ============================================================================
# search_tweets
# ============================================================================

class TestSearchTweetsTool:
    """Test search_tweets."""

    @pytest.mark.asyncio
    async def test_search(self, x_client, sample_tweets):
        x_client.search_recent_tweets.return_value = sample_tweets

        response = await SearchTweetsTool(x_client).execute(query="python")

        x_client.search_recent_tweets.assert_awaited_once_with("python", 10)
        assert_mirrors(response)
        parsed = parse(response)
        assert parsed["query"] == "python"
        assert parsed["count"] == 2
        assert [t["id"] for t in parsed["tweets"]] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_no_results(self, x_client):
        x_client.search_recent_tweets.return_value = None

        parsed = parse(await SearchTweetsTool(x_client).execute(query="nothing", count=20))

        assert parsed == {"success": True, "query": "nothing", "count": 0, "tweets": []}

    @pytest.mark.asyncio
    async def test_rate_limited(self, x_client):
        window = rate_limit_error(300)["rate_limit"]
        x_client.search_recent_tweets.side_effect = XApiError(
            "Rate limit exceeded",
            code=429,
            rate_limit_error=True,
            rate_limit=RateLimit(**window),
        )

        parsed = parse(await SearchTweetsTool(x_client).execute(query="python"))

        assert parsed["error_type"] == "RATE_LIMIT_EXCEEDED"
        assert parsed["error"] == "Failed to search tweets"
        assert parsed["details"]["original_error"] == "Rate limit exceeded"
        assert 0 < parsed["details"]["rate_limit"]["reset_in_minutes"] <= 5

    @pytest.mark.asyncio
    async def test_out_of_range_reset_returns_envelope(self, x_client):
        x_client.search_recent_tweets.side_effect = XApiError(
            "429 Too Many Requests",
            code=429,
            rate_limit_error=True,
            rate_limit=RateLimit(limit=1, remaining=0, reset=10**13),
        )

        response = await SearchTweetsTool(x_client).execute(query="python")

        assert response.is_error is True
        parsed = parse(response)
        assert parsed["error_type"] == "RATE_LIMIT_EXCEEDED"
        assert "rate_limit" not in parsed["details"]

    @pytest.mark.asyncio
    async def test_unexpected_object_is_sanitized(self, x_client):
        class Weird(Exception):
            def __str__(self):
                return "weird failure"

        x_client.search_recent_tweets.side_effect = Weird()

        parsed = parse(await SearchTweetsTool(x_client).execute(query="python"))

        assert parsed["error"] == "Failed to search tweets: weird failure"


# ============================================================================
# get_user_info
# ============================================================================

class TestGetUserInfoTool:
    """Test get_user_info."""

    @pytest.mark.asyncio
    async def test_full_profile(self, x_client):
        x_client.get_user_by_username.return_value = XUser(
            id="123456789",
            username="testuser",
            name="Test User",
            description="This is a test user",
            created_at="2020-01-01T00:00:00.000Z",
            verified=True,
            location="Test City",
            public_metrics=PublicMetrics(
                followers_count=100, following_count=50, tweet_count=1000, listed_count=5
            ),
        )

        response = await GetUserInfoTool(x_client).execute(username="testuser")

        x_client.get_user_by_username.assert_awaited_once_with("testuser", user_fields=USER_INFO_FIELDS)
        assert_mirrors(response)
        user = parse(response)["user"]
        assert user["id"] == "123456789"
        assert user["username"] == "testuser"
        assert user["name"] == "Test User"
        assert user["description"] == "This is a test user"
        assert user["verified"] is True
        assert user["location"] == "Test City"
        assert user["metrics"] == {
            "followers_count": 100,
            "following_count": 50,
            "tweet_count": 1000,
            "listed_count": 5,
        }

    @pytest.mark.asyncio
    async def test_minimal_profile_omits_absent_fields(self, x_client):
        x_client.get_user_by_username.return_value = XUser(id="1", username="bare", name="Bare")

        user = parse(await GetUserInfoTool(x_client).execute(username="bare"))["user"]

        assert user == {"id": "1", "username": "bare", "name": "Bare"}

    @pytest.mark.asyncio
    async def test_user_not_found(self, x_client):
        x_client.get_user_by_username.return_value = None

        parsed = parse(await GetUserInfoTool(x_client).execute(username="nonexistentuser"))

        assert "Failed to fetch user info" in parsed["error"]
        assert "User @nonexistentuser was not found" in parsed["error"]

    @pytest.mark.asyncio
    async def test_api_failure(self, x_client):
        x_client.get_user_by_username.side_effect = Exception("API error occurred")

        parsed = parse(await GetUserInfoTool(x_client).execute(username="testuser"))

        assert parsed["error"] == "Failed to fetch user info: API error occurred"


# ============================================================================
# like_tweet / retweet
# ============================================================================

@pytest.mark.parametrize("tool_cls, action, message, prefix", [
    (LikeTweetTool, "like", "Liked tweet 555.", "Failed to like tweet"),
    (RetweetTool, "retweet", "Retweeted tweet 555.", "Failed to retweet"),
])
class TestEngagementTools:
    """Test like_tweet and retweet."""

    @pytest.mark.asyncio
    async def test_resolves_identity_then_acts(self, x_client, tool_cls, action, message, prefix):
        calls = []
        x_client.get_me.side_effect = lambda: calls.append("get_me") or XUser(id="42", username="me")
        getattr(x_client, action).side_effect = lambda user_id, tweet_id: calls.append((action, user_id, tweet_id))

        response = await tool_cls(x_client).execute(tweet_id="555")

        assert calls == ["get_me", (action, "42", "555")]
        assert_mirrors(response)
        assert parse(response) == {"success": True, "message": message}

    @pytest.mark.asyncio
    async def test_identity_failure_skips_action(self, x_client, tool_cls, action, message, prefix):
        x_client.get_me.side_effect = Exception("Authentication failed")

        response = await tool_cls(x_client).execute(tweet_id="555")

        assert response.is_error is True
        assert parse(response)["error"] == f"{prefix}: Authentication failed"
        getattr(x_client, action).assert_not_awaited()

    @pytest.mark.asyncio
    async def test_action_failure(self, x_client, tool_cls, action, message, prefix):
        getattr(x_client, action).side_effect = Exception("API rate limit exceeded")

        parsed = parse(await tool_cls(x_client).execute(tweet_id="555"))

        assert parsed["error"] == f"{prefix}: API rate limit exceeded"

    @pytest.mark.asyncio
    async def test_server_error_is_generic(self, x_client, tool_cls, action, message, prefix):
        getattr(x_client, action).side_effect = XApiError("Network connection failed", code=503)

        parsed = parse(await tool_cls(x_client).execute(tweet_id="555"))

        assert parsed["success"] is False
        assert "Network connection failed" in parsed["error"]
