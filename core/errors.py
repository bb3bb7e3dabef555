# =============================================================================
# core/errors.py  —  Error Classification & Sanitized Error Responses
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every tool wraps its work in a single try/except and hands whatever was
#   raised to create_error_response().  This module turns that value (an
#   exception, a dict from a JSON payload, a bare string, None ...) into one
#   of two envelopes:
#
#     1. RATE_LIMIT_EXCEEDED — the error carries a numeric `code` and is a
#        429 or explicitly flagged.  Includes reset timing when available.
#     2. Generic failure     — "<prefix>: <sanitized message>" + error_id.
#
# SANITIZATION:
#   The caller only ever sees a message string and an 8-char hex error_id.
#   The full error (repr + traceback) goes to the operator log under the
#   same id.  Objects without a usable `message` are never stringified;
#   they become "An unexpected error occurred".
#
# STRUCTURAL CHECKS:
#   Classification looks at fields, not at exception classes.  A field is
#   read from an attribute, or from a key when the error is a mapping.
# =============================================================================

import logging
import math
import secrets
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from core.models import RateLimit, RateLimitInfo, ToolResponse

_logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_TYPE = "RATE_LIMIT_EXCEEDED"
DEFAULT_RATE_LIMIT_MESSAGE = "X API rate limit reached"
GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


# =============================================================================
# XApiError — the shape the X client raises for HTTP failures
# =============================================================================
class XApiError(Exception):
    """An HTTP-level failure reported by the X API.

    Attributes:
        code: HTTP status code of the failed request (None if unknown).
        rate_limit_error: True when the API signalled a rate-limit violation.
        rate_limit: Window reported in the x-rate-limit-* headers, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int],
        rate_limit_error: bool = False,
        rate_limit: Optional[RateLimit] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.rate_limit_error = rate_limit_error
        self.rate_limit = rate_limit


_MISSING = object()


def _field(value: Any, name: str) -> Any:
    """Read `name` from a mapping key or an attribute; _MISSING if absent."""
    if isinstance(value, Mapping):
        return value.get(name, _MISSING)
    return getattr(value, name, _MISSING)


def _is_number(value: Any) -> bool:
    # bool is an int subclass; True is not an HTTP status.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has_numeric_code(error: Any) -> bool:
    if error is None or isinstance(error, (str, bytes, int, float, bool)):
        return False
    return _is_number(_field(error, "code"))


# =============================================================================
# Rate-limit detection
# =============================================================================
def is_rate_limit_error(error: Any) -> bool:
    """Return True if `error` signals an X API rate-limit violation.

    Requires a numeric `code` field, and then either code 429 or an explicit
    `rate_limit_error` flag that is exactly True.
    """
    if not _has_numeric_code(error):
        return False

    if _field(error, "rate_limit_error") is True:
        return True

    return _field(error, "code") == 429


def extract_rate_limit_info(
    error: Any,
    now: Optional[Callable[[], float]] = None,
) -> Optional[RateLimitInfo]:
    """Pull the rate-limit window out of `error`, if it carries one.

    Returns None when the error has no numeric `code` or no `rate_limit`
    record.  `now` returns the current Unix time in seconds and defaults to
    time.time; tests pass a fixed clock.
    """
    if not _has_numeric_code(error):
        return None

    record = _field(error, "rate_limit")
    if record is _MISSING or record is None:
        return None

    limit = _field(record, "limit")
    remaining = _field(record, "remaining")
    reset = _field(record, "reset")
    values = (limit, remaining, reset)
    if not all(_is_number(v) for v in values):
        return None

    # NaN, infinities and resets outside the datetime range carry no
    # usable window.
    try:
        if not all(math.isfinite(v) for v in values):
            return None
        now_ms = (now or time.time)() * 1000
        reset_in_minutes = math.ceil((reset * 1000 - now_ms) / 60000)
        reset_at = datetime.fromtimestamp(reset, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None

    return RateLimitInfo(
        limit=int(limit),
        remaining=int(remaining),
        reset=int(reset),
        reset_at=reset_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        reset_in_minutes=max(0, reset_in_minutes),
    )


# =============================================================================
# Sanitization
# =============================================================================
def generate_error_id() -> str:
    """Return a fresh 8-character lowercase hex correlation id."""
    return secrets.token_hex(4)


def _log_error_details(error: Any, error_id: str, log: logging.Logger) -> None:
    if isinstance(error, BaseException):
        log.error("[Error %s] %r", error_id, error, exc_info=error)
    else:
        log.error("[Error %s] %r", error_id, error)


def handle_error(error: Any, logger: Optional[logging.Logger] = None) -> dict[str, str]:
    """Reduce any raised value to a caller-safe message plus a correlation id.

    The full error is logged at ERROR level under the returned `error_id`.
    Nothing from the traceback or the object's repr ends up in `message`.

    Message resolution:
        1. Exception instances -> str(exc)
        2. Objects/mappings with a string `message` -> that string
        3. Any other object -> "An unexpected error occurred"
        4. Primitives (str, numbers, bool, None) -> str(value)
    """
    error_id = generate_error_id()
    _log_error_details(error, error_id, logger or _logger)

    if isinstance(error, BaseException):
        message = str(error)
    elif error is None or isinstance(error, (str, int, float, bool)):
        message = str(error)
    else:
        candidate = _field(error, "message")
        message = candidate if isinstance(candidate, str) else GENERIC_ERROR_MESSAGE

    return {"message": message, "error_id": error_id}


# =============================================================================
# Envelopes
# =============================================================================
def _create_rate_limit_error_response(
    error: Any,
    custom_message: Optional[str],
    logger: Optional[logging.Logger],
) -> ToolResponse:
    rate_limit_info = extract_rate_limit_info(error)
    sanitized = handle_error(error, logger)

    details: dict[str, Any] = {"original_error": sanitized["message"]}
    if rate_limit_info is not None:
        details["rate_limit"] = {
            "limit": rate_limit_info.limit,
            "remaining": rate_limit_info.remaining,
            "reset_at": rate_limit_info.reset_at,
            "reset_in_minutes": rate_limit_info.reset_in_minutes,
        }
        if rate_limit_info.reset_in_minutes > 0:
            details["message"] = f"Please retry in {rate_limit_info.reset_in_minutes} minute(s)."
        else:
            details["message"] = "Rate limit resets momentarily"

    return ToolResponse.failure({
        "success": False,
        "error_type": RATE_LIMIT_ERROR_TYPE,
        "error": custom_message if custom_message is not None else DEFAULT_RATE_LIMIT_MESSAGE,
        "error_id": sanitized["error_id"],
        "details": details,
    })


def create_error_response(
    error: Any,
    custom_message: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> ToolResponse:
    """Build the failure envelope for a tool, routing rate limits specially.

    Args:
        error: Whatever the tool caught.
        custom_message: Task-specific prefix, e.g. "Failed to post tweet".
        logger: Where the full error is logged; defaults to this module's.

    Returns:
        A ToolResponse with is_error=True and the JSON envelope as its text.
    """
    if is_rate_limit_error(error):
        return _create_rate_limit_error_response(error, custom_message, logger)

    sanitized = handle_error(error, logger)
    message = sanitized["message"]

    return ToolResponse.failure({
        "success": False,
        "error": f"{custom_message}: {message}" if custom_message else message,
        "error_id": sanitized["error_id"],
    })
