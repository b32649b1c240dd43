"""
Fixed-window request counters for the login endpoint

Counting happens in process memory. When REDIS_URL is set, a new window is
seeded from Redis and the running count is pushed back every
REDIS_SYNC_SECONDS, so several workers converge on one budget.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import RATE_LIMIT_ENABLED, REDIS_URL

logger = logging.getLogger(__name__)

REDIS_SYNC_SECONDS = 10
PRUNE_EVERY_SECONDS = 60


@dataclass
class Window:
    count: int
    resets_at: int
    synced_at: int


windows: dict[str, Window] = {}
windows_lock = Lock()
last_prune = 0

redis_client: Optional[redis.Redis] = None


def mask_url(url: str) -> str:
    if "@" not in url:
        return "****"
    scheme = url.split(":", 1)[0]
    return f"{scheme}://****@{url.rsplit('@', 1)[1]}"


def get_redis_client() -> Optional[redis.Redis]:
    """Shared Redis connection, or None when REDIS_URL is unset or unreachable"""
    global redis_client

    if redis_client is not None or not REDIS_URL:
        return redis_client

    logger.info(f"📡 Connecting to Redis at {mask_url(REDIS_URL)}")
    try:
        client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Redis connection failed: {e}")
        return None

    redis_client = client
    logger.info("✅ Redis connected")
    return redis_client


def reset_rate_limits():
    """Forget every in-memory window"""
    with windows_lock:
        windows.clear()


def prune_windows(now: int):
    global last_prune
    if now - last_prune < PRUNE_EVERY_SECONDS:
        return
    last_prune = now
    with windows_lock:
        expired = [key for key, window in windows.items() if window.resets_at <= now]
        for key in expired:
            del windows[key]
    if expired:
        logger.debug(f"🧹 Dropped {len(expired)} expired rate limit windows")


def open_window(key: str, now: int, window_seconds: int, client: Optional[redis.Redis]) -> Window:
    """Start a window, continuing the count another worker stored in Redis"""
    if client is not None:
        try:
            stored, ttl = client.get(key), client.ttl(key)
            if stored and ttl > 0:
                return Window(count=int(stored), resets_at=now + ttl, synced_at=now)
        except Exception as e:
            logger.warning(f"⚠️ Could not read {key} from Redis: {e}")
    return Window(count=0, resets_at=now + window_seconds, synced_at=now)


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """
    Count one request against key.

    Returns:
        (allowed, requests counted in the window, seconds until the window resets)
    """
    now = int(time.time())
    prune_windows(now)

    with windows_lock:
        window = windows.get(key)
        if window is None:
            window = windows[key] = open_window(key, now, window_seconds, client)
        elif now >= window.resets_at:
            window.count, window.resets_at, window.synced_at = 0, now + window_seconds, 0

        allowed = window.count < limit
        if allowed:
            window.count += 1

        if client is not None and now - window.synced_at >= REDIS_SYNC_SECONDS:
            try:
                client.set(key, window.count, ex=max(1, window.resets_at - now))
                window.synced_at = now
            except Exception as e:
                logger.warning(f"⚠️ Could not push {key} to Redis: {e}")

        return allowed, window.count, max(0, window.resets_at - now)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Build a per-client-IP dependency

    Example:
        login_rate_limit = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(login_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        if not RATE_LIMIT_ENABLED:
            return

        key = f"{key_prefix}:{client_ip(request)}"
        allowed, count, ttl = check_rate_limit(key, limit, window_seconds, get_redis_client())
        if not allowed:
            logger.warning(f"🚫 Rate limit hit for {key} ({count}/{limit})")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Too many requests. Maximum {limit} per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter
