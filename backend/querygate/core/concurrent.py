"""
In-flight request limit per client.

A client (keyed by remote address) may hold at most MAX_CONCURRENT_PER_CLIENT
requests at once, so one caller cannot occupy every pooled connection of a
service. 0 disables the limit. Counters live in Redis when REDIS_URL is set
(shared by all workers), otherwise in this process.
"""

import logging
import threading
from collections import Counter

import redis

from querygate.core.config import settings
from querygate.core.redis_client import get_redis

_log = logging.getLogger(__name__)

_SLOT_KEY_PREFIX = "concurrent:querygate:"
# Counters expire so slots held by a crashed worker are eventually freed.
_SLOT_TTL_SECONDS = 300

_memory: Counter[str] = Counter()
_memory_lock = threading.Lock()


def _limit() -> int:
    return max(settings.MAX_CONCURRENT_PER_CLIENT or 0, 0)


def _redis_take(r: redis.Redis, client_key: str, limit: int) -> bool:
    key = _SLOT_KEY_PREFIX + client_key
    try:
        pipe = r.pipeline()
        pipe.incr(key)
        pipe.expire(key, _SLOT_TTL_SECONDS)
        held = pipe.execute()[0]
        if held <= limit:
            return True
        r.decr(key)
        return False
    except Exception:
        # Redis outage must not take the API down with it.
        _log.warning("Redis slot acquire failed; allowing request", exc_info=True)
        return True


def _redis_give_back(r: redis.Redis, client_key: str) -> None:
    try:
        if r.decr(_SLOT_KEY_PREFIX + client_key) <= 0:
            r.delete(_SLOT_KEY_PREFIX + client_key)
    except Exception:
        _log.warning("Redis slot release failed", exc_info=True)


def _memory_take(client_key: str, limit: int) -> bool:
    with _memory_lock:
        if _memory[client_key] >= limit:
            return False
        _memory[client_key] += 1
        return True


def _memory_give_back(client_key: str) -> None:
    with _memory_lock:
        _memory[client_key] -= 1
        if _memory[client_key] <= 0:
            del _memory[client_key]


def acquire_concurrent_slot(client_key: str) -> bool:
    """
    Take one in-flight slot for *client_key*. Returns False when the client
    is already at its limit. Always True when the limit is off or the key is
    empty.
    """
    limit = _limit()
    if not limit or not client_key:
        return True
    r = get_redis()
    if r is not None:
        taken = _redis_take(r, client_key, limit)
    else:
        taken = _memory_take(client_key, limit)
    if not taken:
        _log.info("Client at in-flight limit", extra={"client": client_key, "limit": limit})
    return taken


def release_concurrent_slot(client_key: str) -> None:
    """Give back a slot taken by acquire_concurrent_slot."""
    if not _limit() or not client_key:
        return
    r = get_redis()
    if r is not None:
        _redis_give_back(r, client_key)
    else:
        _memory_give_back(client_key)
