"""
Shared Redis client for cross-process request slot counting.

Returns None when ``REDIS_URL`` is unset or the initial ping fails; callers
then fall back to in-process state.
"""

import logging
import threading

import redis

from querygate.core.config import settings

_log = logging.getLogger(__name__)

_lock = threading.Lock()
_client: redis.Redis | None = None
_tried = False


def get_redis() -> redis.Redis | None:
    """Return the shared bytes-mode Redis client, created on first call."""
    global _client, _tried
    if _tried:
        return _client
    with _lock:
        if _tried:
            return _client
        _tried = True
        _client = _create_client()
        return _client


def _create_client() -> redis.Redis | None:
    if not settings.REDIS_URL:
        return None
    try:
        r = redis.Redis.from_url(settings.REDIS_URL, decode_responses=False)
        r.ping()
        return r
    except Exception as e:
        _log.warning("Redis unavailable, using in-memory slots: %s", type(e).__name__)
        return None


def reset() -> None:
    """Forget the cached client (tests, settings reload)."""
    global _client, _tried
    with _lock:
        _client = None
        _tried = False
