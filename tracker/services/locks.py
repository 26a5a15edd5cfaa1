import logging
import uuid
from contextlib import contextmanager

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

_redis_client = None


def _get_redis_client():
    global _redis_client
    if _redis_client is None:
        url = getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
        _redis_client = redis.Redis.from_url(url)
    return _redis_client


def acquire_lock(lock_key: str, ttl_seconds: int = 600) -> str | None:
    """
    Returns an ownership token when the lock was taken, None when someone
    else holds it. If Redis is unreachable the lock fails open.
    """
    token = uuid.uuid4().hex
    try:
        client = _get_redis_client()
        if client.set(lock_key, token, nx=True, ex=ttl_seconds):
            return token
        return None
    except Exception:
        logger.exception("Lock failure for %s; continuing without lock.", lock_key)
        return token


def release_lock(lock_key: str, token: str) -> None:
    try:
        client = _get_redis_client()
        current = client.get(lock_key)
        if current is not None and current.decode() == token:
            client.delete(lock_key)
    except Exception:
        logger.exception("Failed to release lock %s", lock_key)


@contextmanager
def student_sync_lock(student_id: int):
    """Yields True while holding the per-student sync lock, False if it is taken."""
    lock_key = f"sync_student:{student_id}"
    ttl = int(getattr(settings, "SYNC_STUDENT_LOCK_SECONDS", 15 * 60))
    token = acquire_lock(lock_key, ttl_seconds=ttl)
    try:
        yield token is not None
    finally:
        if token is not None:
            release_lock(lock_key, token)
