# =============================================================================
# core/x_client.py  —  X (Twitter) API Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the capability the MCP tools talk to (the XApi protocol) and the
#   tweepy-backed implementation used in production.
#
# TWO APIs UNDER ONE HANDLE:
#   - v2 endpoints (posts, timelines, search, users, likes, reposts) go
#     through tweepy.asynchronous.AsyncClient with OAuth 1.0a user context.
#   - Media upload still lives on v1.1, so it goes through tweepy.API, which
#     is synchronous; each upload runs in a worker thread.
#
# ERROR SHAPE:
#   Any tweepy HTTPException is re-raised as core.errors.XApiError carrying
#   the HTTP status as `code` and the x-rate-limit-* window as `rate_limit`.
#   The error classifier reads those fields; the tools never import tweepy.
#
# RESULTS:
#   Every method returns core.models dataclasses (or None / a list), never
#   tweepy objects.  Timeline-style calls return None when X sends no data.
# =============================================================================

import asyncio
import functools
import io
import logging
import mimetypes
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

import tweepy
from tweepy.asynchronous import AsyncClient

from core.errors import XApiError
from core.models import PostedTweet, PublicMetrics, RateLimit, Tweet, XUser
from core.settings import XCredentials

logger = logging.getLogger(__name__)

TWEET_FIELDS = ["created_at"]
USER_INFO_FIELDS = ["created_at", "description", "public_metrics", "verified", "location"]


class XApi(Protocol):
    """The operations the MCP tools need from an authenticated X account."""

    async def post_tweet(self, text: str, media_ids: Optional[Sequence[str]] = None) -> PostedTweet: ...

    async def get_home_timeline(self, max_results: int) -> Optional[list[Tweet]]: ...

    async def get_user_by_username(
        self, username: str, user_fields: Optional[Sequence[str]] = None
    ) -> Optional[XUser]: ...

    async def get_user_tweets(self, user_id: str, max_results: int) -> Optional[list[Tweet]]: ...

    async def search_recent_tweets(self, query: str, max_results: int) -> Optional[list[Tweet]]: ...

    async def get_me(self) -> XUser: ...

    async def like(self, user_id: str, tweet_id: str) -> None: ...

    async def retweet(self, user_id: str, tweet_id: str) -> None: ...

    async def upload_media(self, data: bytes, mime_type: str, *, long_video: bool = False) -> str: ...


# =============================================================================
# tweepy error translation
# =============================================================================
def _header_int(headers: Mapping, name: str) -> Optional[int]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_rate_limit_headers(headers: Optional[Mapping]) -> Optional[RateLimit]:
    """Read the x-rate-limit-* triple; None unless all three are present."""
    if not headers:
        return None

    limit = _header_int(headers, "x-rate-limit-limit")
    remaining = _header_int(headers, "x-rate-limit-remaining")
    reset = _header_int(headers, "x-rate-limit-reset")
    if limit is None or remaining is None or reset is None:
        return None

    return RateLimit(limit=limit, remaining=remaining, reset=reset)


def translate_http_exception(exc: tweepy.errors.HTTPException) -> XApiError:
    """Convert a tweepy HTTP failure into an XApiError."""
    response = exc.response
    # requests.Response has status_code, aiohttp.ClientResponse has status.
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    code = status if isinstance(status, int) else None

    return XApiError(
        str(exc),
        code=code,
        rate_limit_error=isinstance(exc, tweepy.errors.TooManyRequests) or code == 429,
        rate_limit=parse_rate_limit_headers(getattr(response, "headers", None)),
    )


def _translate_errors(func):
    """Re-raise tweepy HTTP failures from `func` as XApiError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except tweepy.errors.HTTPException as exc:
            raise translate_http_exception(exc) from exc

    return wrapper


# =============================================================================
# tweepy model conversion
# =============================================================================
def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return str(value)


def _to_tweet(tweet: Any) -> Tweet:
    return Tweet(
        id=str(tweet.id),
        text=tweet.text,
        created_at=_iso(getattr(tweet, "created_at", None)),
    )


def _to_tweets(data: Any) -> Optional[list[Tweet]]:
    if data is None:
        return None
    return [_to_tweet(t) for t in data]


def _to_metrics(metrics: Optional[Mapping]) -> Optional[PublicMetrics]:
    if not metrics:
        return None
    return PublicMetrics(
        followers_count=metrics.get("followers_count", 0),
        following_count=metrics.get("following_count", 0),
        tweet_count=metrics.get("tweet_count", 0),
        listed_count=metrics.get("listed_count", 0),
    )


def _to_user(user: Any) -> XUser:
    return XUser(
        id=str(user.id),
        username=user.username,
        name=getattr(user, "name", "") or "",
        description=getattr(user, "description", None),
        created_at=_iso(getattr(user, "created_at", None)),
        verified=getattr(user, "verified", None),
        location=getattr(user, "location", None),
        public_metrics=_to_metrics(getattr(user, "public_metrics", None)),
    )


# =============================================================================
# TweepyXClient — production implementation of XApi
# =============================================================================
class TweepyXClient:
    """XApi backed by tweepy (v2 AsyncClient + v1.1 API for media)."""

    def __init__(self, client: AsyncClient, media_api: tweepy.API):
        self._client = client
        self._media_api = media_api

    @classmethod
    def from_credentials(cls, credentials: XCredentials) -> "TweepyXClient":
        client = AsyncClient(
            consumer_key=credentials.api_key,
            consumer_secret=credentials.api_secret,
            access_token=credentials.access_token,
            access_token_secret=credentials.access_token_secret,
            wait_on_rate_limit=False,
        )
        auth = tweepy.OAuth1UserHandler(
            credentials.api_key,
            credentials.api_secret,
            credentials.access_token,
            credentials.access_token_secret,
        )
        return cls(client, tweepy.API(auth))

    # --- Posts ----------------------------------------------------------------
    @_translate_errors
    async def post_tweet(self, text: str, media_ids: Optional[Sequence[str]] = None) -> PostedTweet:
        response = await self._client.create_tweet(
            text=text,
            media_ids=list(media_ids) if media_ids else None,
            user_auth=True,
        )
        return PostedTweet(id=str(response.data["id"]), text=response.data["text"])

    # --- Reads ----------------------------------------------------------------
    @_translate_errors
    async def get_home_timeline(self, max_results: int) -> Optional[list[Tweet]]:
        response = await self._client.get_home_timeline(
            max_results=max_results,
            tweet_fields=TWEET_FIELDS,
            user_auth=True,
        )
        return _to_tweets(response.data)

    @_translate_errors
    async def get_user_by_username(
        self, username: str, user_fields: Optional[Sequence[str]] = None
    ) -> Optional[XUser]:
        response = await self._client.get_user(
            username=username,
            user_fields=list(user_fields) if user_fields else None,
            user_auth=True,
        )
        if response.data is None:
            return None
        return _to_user(response.data)

    @_translate_errors
    async def get_user_tweets(self, user_id: str, max_results: int) -> Optional[list[Tweet]]:
        response = await self._client.get_users_tweets(
            user_id,
            max_results=max_results,
            tweet_fields=TWEET_FIELDS,
            user_auth=True,
        )
        return _to_tweets(response.data)

    @_translate_errors
    async def search_recent_tweets(self, query: str, max_results: int) -> Optional[list[Tweet]]:
        response = await self._client.search_recent_tweets(
            query,
            max_results=max_results,
            tweet_fields=TWEET_FIELDS,
            user_auth=True,
        )
        return _to_tweets(response.data)

    @_translate_errors
    async def get_me(self) -> XUser:
        response = await self._client.get_me(user_auth=True)
        if response.data is None:
            raise LookupError("Authenticated user could not be resolved")
        return _to_user(response.data)

    # --- Engagement -------------------------------------------------------------
    # The acting user id is passed explicitly, so these hit the raw v2 routes.
    @_translate_errors
    async def like(self, user_id: str, tweet_id: str) -> None:
        await self._client.request(
            "POST", f"/2/users/{user_id}/likes", json={"tweet_id": tweet_id}, user_auth=True
        )

    @_translate_errors
    async def retweet(self, user_id: str, tweet_id: str) -> None:
        await self._client.request(
            "POST", f"/2/users/{user_id}/retweets", json={"tweet_id": tweet_id}, user_auth=True
        )

    # --- Media ------------------------------------------------------------------
    @_translate_errors
    async def upload_media(self, data: bytes, mime_type: str, *, long_video: bool = False) -> str:
        filename = "upload" + (mimetypes.guess_extension(mime_type) or "")
        logger.info("Uploading %s (%d bytes, %s)", filename, len(data), mime_type)

        if mime_type.startswith("video/"):
            media = await asyncio.to_thread(
                self._media_api.chunked_upload,
                filename,
                file=io.BytesIO(data),
                file_type=mime_type,
                media_category="amplify_video" if long_video else "tweet_video",
            )
        else:
            media = await asyncio.to_thread(
                self._media_api.simple_upload,
                filename,
                file=io.BytesIO(data),
                media_category="tweet_image",
            )
        return media.media_id_string
