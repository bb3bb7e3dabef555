# =============================================================================
# tools/x_tools.py  —  The seven X tools (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Implements every MCP tool the server exposes.  Each tool is a small
#   class following the same template:
#
#     1. Derive effective arguments (defaults, clamping, conflicts)
#     2. Make one or two calls on the injected XApi client
#     3. Map the result field by field into the declared output shape
#     4. On ANY exception, return create_error_response(error, "<prefix>")
#
# TOOL NAMING CONVENTIONS:
#   - get_* / search_*  → read-only, safe to retry
#   - post_* / like_* / retweet → write operations on the account
#
# COUNT ARGUMENTS:
#   count must be >= 1 (rejected by schema validation otherwise).  Omitted
#   means 10; anything above 100 is capped at 100, never rejected.
# =============================================================================

import logging
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from core.errors import create_error_response
from core.media import upload_image, upload_video
from core.models import ToolResponse, Tweet, XUser
from core.x_client import USER_INFO_FIELDS
from tools.contract import XTool, effective_count

logger = logging.getLogger(__name__)

CountArg = Annotated[
    Optional[int],
    Field(ge=1, description="Number of tweets to fetch (default 10, max 100)"),
]


# =============================================================================
# Output schemas
# =============================================================================
class TweetItem(BaseModel):
    id: str = Field(description="Tweet ID")
    text: str = Field(description="Tweet text content")
    created_at: Optional[str] = Field(default=None, description="Tweet creation timestamp")


class PostTweetOutput(BaseModel):
    success: bool = Field(description="Whether the tweet was successfully posted")
    tweet_id: str = Field(description="The ID of the posted tweet")
    text: str = Field(description="The text content of the posted tweet")


class HomeTimelineOutput(BaseModel):
    success: bool = Field(description="Whether the timeline was successfully fetched")
    count: int = Field(description="Number of tweets returned")
    tweets: list[TweetItem] = Field(description="Tweets on the home timeline, newest first")


class UserTweetsOutput(BaseModel):
    success: bool = Field(description="Whether the user tweets were successfully fetched")
    username: str = Field(description="Username that was queried")
    count: int = Field(description="Number of tweets returned")
    tweets: list[TweetItem] = Field(description="Array of user tweets")


class SearchTweetsOutput(BaseModel):
    success: bool = Field(description="Whether the search succeeded")
    query: str = Field(description="The query that was searched")
    count: int = Field(description="Number of tweets returned")
    tweets: list[TweetItem] = Field(description="Matching tweets")


class UserMetrics(BaseModel):
    followers_count: int
    following_count: int
    tweet_count: int
    listed_count: int


class UserProfile(BaseModel):
    id: str = Field(description="User ID")
    username: str = Field(description="Handle without @")
    name: str = Field(description="Display name")
    description: Optional[str] = Field(default=None, description="Profile bio")
    created_at: Optional[str] = Field(default=None, description="Account creation timestamp")
    verified: Optional[bool] = Field(default=None, description="Whether the account is verified")
    location: Optional[str] = Field(default=None, description="Self-reported location")
    metrics: Optional[UserMetrics] = Field(default=None, description="Public account counters")


class UserInfoOutput(BaseModel):
    success: bool = Field(description="Whether the user was found")
    user: UserProfile


class ActionOutput(BaseModel):
    success: bool = Field(description="Whether the action was performed")
    message: str = Field(description="Human-readable confirmation")


# =============================================================================
# Result mapping helpers
# =============================================================================
def _tweet_to_dict(tweet: Tweet) -> dict:
    item = {"id": tweet.id, "text": tweet.text}
    if tweet.created_at is not None:
        item["created_at"] = tweet.created_at
    return item


def _tweet_list(tweets: Optional[list[Tweet]]) -> list[dict]:
    """Normalize a None / empty page to [] and map each item."""
    return [_tweet_to_dict(t) for t in tweets or []]


def _user_to_dict(user: XUser) -> dict:
    profile = {"id": user.id, "username": user.username, "name": user.name}
    for key in ("description", "created_at", "verified", "location"):
        value = getattr(user, key)
        if value is not None:
            profile[key] = value
    if user.public_metrics is not None:
        m = user.public_metrics
        profile["metrics"] = {
            "followers_count": m.followers_count,
            "following_count": m.following_count,
            "tweet_count": m.tweet_count,
            "listed_count": m.listed_count,
        }
    return profile


async def _require_user(client, username: str, **kwargs) -> XUser:
    user = await client.get_user_by_username(username, **kwargs)
    if user is None:
        raise LookupError(f"User @{username} was not found")
    return user


# =============================================================================
# TOOL 1: post_tweet
# =============================================================================
# Optionally uploads ONE image or ONE video first and attaches its media id.
# Asking for both is refused before anything touches the network.
# =============================================================================
class PostTweetTool(XTool):
    name = "post_tweet"
    description = "Posts a tweet on behalf of the authenticated user."
    output_schema = PostTweetOutput

    async def execute(
        self,
        text: Annotated[str, Field(description="Tweet text to publish (max 280 characters)")],
        image_path: Annotated[
            Optional[str],
            Field(description="Path to an image to attach (png, jpg, jpeg, gif, webp; max 5MB)"),
        ] = None,
        video_path: Annotated[
            Optional[str],
            Field(description="Path to a video to attach (mp4, mov, avi, webm, m4v; max 512MB)"),
        ] = None,
    ) -> ToolResponse:
        try:
            if image_path and video_path:
                raise ValueError("Cannot attach both image and video to a single tweet")

            media_ids = None
            if image_path:
                media_ids = [await upload_image(self.client, image_path)]
            elif video_path:
                media_ids = [await upload_video(self.client, video_path)]

            tweet = await self.client.post_tweet(text, media_ids=media_ids)
            logger.info(f"Posted tweet {tweet.id}" + (" with media" if media_ids else ""))

            return ToolResponse.success({
                "success": True,
                "tweet_id": tweet.id,
                "text": tweet.text,
            })
        except Exception as error:
            return create_error_response(error, "Failed to post tweet")


# =============================================================================
# TOOL 2: get_home_timeline
# =============================================================================
class GetHomeTimelineTool(XTool):
    name = "get_home_timeline"
    description = "Retrieves the authenticated user's home timeline."
    output_schema = HomeTimelineOutput

    async def execute(self, count: CountArg = None) -> ToolResponse:
        try:
            tweets = _tweet_list(await self.client.get_home_timeline(effective_count(count)))

            return ToolResponse.success({
                "success": True,
                "count": len(tweets),
                "tweets": tweets,
            })
        except Exception as error:
            return create_error_response(error, "Failed to fetch home timeline")


# =============================================================================
# TOOL 3: get_user_tweets
# =============================================================================
# Two calls: resolve the handle to an id, then fetch that id's posts.
# An unknown handle becomes a LookupError on the normal failure path.
# =============================================================================
class GetUserTweetsTool(XTool):
    name = "get_user_tweets"
    description = "Retrieves recent tweets for a specific user."
    output_schema = UserTweetsOutput

    async def execute(
        self,
        username: Annotated[str, Field(description="Username (without @)")],
        count: CountArg = None,
    ) -> ToolResponse:
        try:
            user = await _require_user(self.client, username)
            tweets = _tweet_list(await self.client.get_user_tweets(user.id, effective_count(count)))

            return ToolResponse.success({
                "success": True,
                "username": username,
                "count": len(tweets),
                "tweets": tweets,
            })
        except Exception as error:
            return create_error_response(error, "Failed to fetch user tweets")


# =============================================================================
# TOOL 4: search_tweets
# =============================================================================
class SearchTweetsTool(XTool):
    name = "search_tweets"
    description = "Searches recent tweets by keyword."
    output_schema = SearchTweetsOutput

    async def execute(
        self,
        query: Annotated[str, Field(description="Search query")],
        count: CountArg = None,
    ) -> ToolResponse:
        try:
            tweets = _tweet_list(
                await self.client.search_recent_tweets(query, effective_count(count))
            )

            return ToolResponse.success({
                "success": True,
                "query": query,
                "count": len(tweets),
                "tweets": tweets,
            })
        except Exception as error:
            return create_error_response(error, "Failed to search tweets")


# =============================================================================
# TOOL 5: get_user_info
# =============================================================================
class GetUserInfoTool(XTool):
    name = "get_user_info"
    description = "Retrieves basic profile information for a given user."
    output_schema = UserInfoOutput

    async def execute(
        self,
        username: Annotated[str, Field(description="Username (without @)")],
    ) -> ToolResponse:
        try:
            user = await _require_user(self.client, username, user_fields=USER_INFO_FIELDS)

            return ToolResponse.success({
                "success": True,
                "user": _user_to_dict(user),
            })
        except Exception as error:
            return create_error_response(error, "Failed to fetch user info")


# =============================================================================
# TOOLS 6 & 7: like_tweet / retweet
# =============================================================================
# Both act as the authenticated account: get_me() first, then the action
# with (my id, target id).  If get_me() fails the action is never sent.
# =============================================================================
class LikeTweetTool(XTool):
    name = "like_tweet"
    description = "Likes a tweet on behalf of the authenticated user."
    output_schema = ActionOutput

    async def execute(
        self,
        tweet_id: Annotated[str, Field(description="Tweet ID to like")],
    ) -> ToolResponse:
        try:
            me = await self.client.get_me()
            await self.client.like(me.id, tweet_id)

            return ToolResponse.success({
                "success": True,
                "message": f"Liked tweet {tweet_id}.",
            })
        except Exception as error:
            return create_error_response(error, "Failed to like tweet")


class RetweetTool(XTool):
    name = "retweet"
    description = "Retweets a post on behalf of the authenticated user."
    output_schema = ActionOutput

    async def execute(
        self,
        tweet_id: Annotated[str, Field(description="Tweet ID to retweet")],
    ) -> ToolResponse:
        try:
            me = await self.client.get_me()
            await self.client.retweet(me.id, tweet_id)

            return ToolResponse.success({
                "success": True,
                "message": f"Retweeted tweet {tweet_id}.",
            })
        except Exception as error:
            return create_error_response(error, "Failed to retweet")
