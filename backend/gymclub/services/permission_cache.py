"""Redis-backed cache of effective permission keys per user.

Every API worker talks to the same Redis, so an invalidation issued by one
worker is seen by all of them. The cache is off unless both ``REDIS_URL`` and
a positive ``PERMISSION_CACHE_TTL_SECONDS`` are configured.
"""
from __future__ import annotations

import json
import logging

import redis

from gymclub.core.config import settings

logger = logging.getLogger(__name__)


class PermissionCache:
    def __init__(self, client: redis.Redis | None = None, *, ttl_seconds: int = 0, namespace: str = "perm:user:"):
        self._client = client
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace

    def set_client(self, client: redis.Redis | None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis | None:
        return self._client

    @property
    def enabled(self) -> bool:
        return self._client is not None and self.ttl_seconds > 0

    def _key(self, user_id: int) -> str:
        return f"{self.namespace}{user_id}"

    def get(self, user_id: int) -> frozenset[str] | None:
        if not self.enabled:
            return None
        try:
            raw = self._client.get(self._key(user_id))
        except redis.RedisError:
            logger.warning("permission cache read failed user=%s, resolving from database", user_id, exc_info=True)
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return frozenset(json.loads(raw))
        except (json.JSONDecodeError, TypeError):
            return None

    def put(self, user_id: int, keys: frozenset[str]) -> None:
        if not self.enabled:
            return
        try:
            self._client.set(self._key(user_id), json.dumps(sorted(keys)), ex=self.ttl_seconds)
        except redis.RedisError:
            logger.warning("permission cache write failed user=%s", user_id, exc_info=True)

    def invalidate(self, user_id: int) -> None:
        if self._client is None:
            return
        try:
            self._client.delete(self._key(user_id))
        except redis.RedisError:
            # the entry still expires after ttl_seconds
            logger.error("permission cache invalidation failed user=%s", user_id, exc_info=True)

    def clear(self) -> None:
        if self._client is None:
            return
        try:
            keys = list(self._client.scan_iter(match=f"{self.namespace}*"))
            if keys:
                self._client.delete(*keys)
        except redis.RedisError:
            logger.error("permission cache clear failed", exc_info=True)


def _client_from_settings() -> redis.Redis | None:
    if not settings.REDIS_URL:
        return None
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


permission_cache = PermissionCache(_client_from_settings(), ttl_seconds=settings.PERMISSION_CACHE_TTL_SECONDS)
