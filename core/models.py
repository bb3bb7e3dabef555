# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of everything that crosses the boundary
# between the X API client (core/x_client.py) and the MCP tools (tools/).
# The tools never see tweepy objects; the client converts every response
# into one of the classes below first.
#
# DESIGN PRINCIPLE — "No Phantom Fields":
#   A tool output only carries fields declared in its output schema.  If a
#   field is not needed by the calling agent, it is not modelled here.
# =============================================================================

import json
from dataclasses import dataclass
from typing import Any, Optional


# -----------------------------------------------------------------------------
# Tweet — one item of a timeline, a user feed or a search result
# -----------------------------------------------------------------------------
@dataclass
class Tweet:
    """A single post as returned by a read endpoint."""

    id: str
    text: str
    created_at: Optional[str] = None   # ISO-8601, only when the API sent it


@dataclass
class PostedTweet:
    """The id/text pair X returns after publishing a post."""

    id: str
    text: str


# -----------------------------------------------------------------------------
# XUser — profile data for a resolved account
# -----------------------------------------------------------------------------
@dataclass
class PublicMetrics:
    """Follower / following / post counters of an account."""

    followers_count: int = 0
    following_count: int = 0
    tweet_count: int = 0
    listed_count: int = 0


@dataclass
class XUser:
    """An account resolved by handle, or the authenticated account itself."""

    id: str
    username: str
    name: str = ""
    description: Optional[str] = None
    created_at: Optional[str] = None
    verified: Optional[bool] = None
    location: Optional[str] = None
    public_metrics: Optional[PublicMetrics] = None


# -----------------------------------------------------------------------------
# Rate limiting
# -----------------------------------------------------------------------------
# RateLimit is the raw triple X reports in its x-rate-limit-* headers.
# RateLimitInfo is what the error classifier derives from it: the same
# numbers plus a human-usable reset time.
# -----------------------------------------------------------------------------
@dataclass
class RateLimit:
    """Raw rate-limit window as reported by the API."""

    limit: int
    remaining: int
    reset: int                         # Unix seconds


@dataclass
class RateLimitInfo:
    """Normalized rate-limit metadata attached to a RATE_LIMIT_EXCEEDED error."""

    limit: int
    remaining: int
    reset: int
    reset_at: str                      # ISO-8601, e.g. "2025-07-10T12:00:00.000Z"
    reset_in_minutes: int              # Always >= 0, rounded up


# -----------------------------------------------------------------------------
# ToolResponse — the envelope every tool's execute() returns
# -----------------------------------------------------------------------------
# The text form is what an MCP client reads first; structured_content is the
# same payload as a record, sent only on success.  Both are produced from the
# one dict, so they cannot drift apart.
# -----------------------------------------------------------------------------
@dataclass
class ToolResponse:
    """Result of a single tool invocation (success or failure envelope)."""

    text: str
    structured_content: Optional[dict[str, Any]] = None
    is_error: bool = False

    @classmethod
    def success(cls, payload: dict[str, Any]) -> "ToolResponse":
        return cls(text=_to_json(payload), structured_content=payload)

    @classmethod
    def failure(cls, payload: dict[str, Any]) -> "ToolResponse":
        return cls(text=_to_json(payload), is_error=True)

    @property
    def content(self) -> list[dict[str, str]]:
        """MCP-style content blocks: a single JSON text block."""
        return [{"type": "text", "text": self.text}]


def _to_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)
