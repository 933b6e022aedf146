"""Backoff for Apps Script API quota errors.

Google APIs answer quota and rate-limit breaches with HTTP 429 and an error
body whose status is RESOURCE_EXHAUSTED, sometimes with a Retry-After
header. Those calls are retried with exponential backoff (1s, 2s, 4s),
bounded by MAX_WAIT when the server asks for longer. Everything else is
raised immediately.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3

# Upper bound for a server-suggested Retry-After, in seconds
MAX_WAIT = 30

QUOTA_MARKERS = (
    '429',
    'too many requests',
    'resource_exhausted',
    'rate limit exceeded',
    'quota exceeded',
)


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Call func, retrying quota errors with exponential backoff.

    Raises:
        APIAccessError: If the quota error persists after MAX_RETRIES retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> payload = retry_on_rate_limit(session.get, url, timeout=30)
    """
    attempt = 0
    while True:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise
            if attempt >= MAX_RETRIES:
                logger.error(f"Quota error persisted after {MAX_RETRIES} retries, giving up")
                raise APIAccessError(
                    f"Apps Script API failure (after {MAX_RETRIES} retries)"
                ) from e

            wait_time = _wait_time(e, attempt)
            attempt += 1
            logger.info(f"Quota error, retrying in {wait_time}s (retry {attempt}/{MAX_RETRIES})")
            time.sleep(wait_time)


def _wait_time(exception: Exception, attempt: int) -> float:
    """Backoff for this attempt, or the server's Retry-After when it is longer."""
    backoff = 2 ** attempt
    suggested = _retry_after(exception)
    if suggested is None:
        return backoff
    return min(max(backoff, suggested), MAX_WAIT)


def _retry_after(exception: Exception) -> Optional[float]:
    response = getattr(exception, 'response', None)
    headers = getattr(response, 'headers', None) or {}
    try:
        value = headers.get('Retry-After')
    except AttributeError:
        return None
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        # HTTP-date values fall back to the plain backoff
        return None


def _is_rate_limit_error(exception: Exception) -> bool:
    """True if the exception is an HTTP 429 or a RESOURCE_EXHAUSTED error."""
    if getattr(exception, 'status_code', None) == 429:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    error_msg = str(exception).lower()
    return any(marker in error_msg for marker in QUOTA_MARKERS)
