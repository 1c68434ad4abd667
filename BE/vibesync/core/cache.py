"""
VibeSync Redis Cache
무드 임베딩 벡터 JSON 캐싱
"""

import hashlib
import json
import logging
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis 캐시 클라이언트 (연결 실패 시 캐시 없이 진행)"""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client: Optional[redis.Redis] = None
        self._connect()

    def _connect(self) -> None:
        try:
            client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2
            )
            client.ping()
            self._client = client
            logger.info(f"Redis connected: {self.redis_url}")
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable, continuing without cache: {e}")
            self._client = None

    @property
    def is_connected(self) -> bool:
        if self._client is None:
            return False
        try:
            self._client.ping()
            return True
        except redis.RedisError:
            return False

    def ping(self) -> bool:
        return self.is_connected

    def get_json(self, key: str) -> Optional[Any]:
        """캐시에서 JSON 조회 (미스/장애 시 None)"""
        if self._client is None:
            return None
        try:
            data = self._client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed: {e}")
            return None
        if not data:
            return None
        try:
            return json.loads(data)
        except ValueError:
            logger.warning(f"Discarding corrupt cache entry: {key}")
            return None

    def set_json(self, key: str, value: Any, ttl_sec: int) -> None:
        """캐시에 JSON 저장 (ttl_sec <= 0이면 무시)"""
        if self._client is None or ttl_sec <= 0:
            return
        try:
            self._client.setex(key, ttl_sec, json.dumps(value))
        except redis.RedisError as e:
            logger.warning(f"Cache write failed: {e}")


def make_embedding_cache_key(model: str, text: str) -> str:
    """
    임베딩 캐시 키 생성

    형식: emb:{model}:{sha1(text)}
    """
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()
    return f"emb:{model}:{digest}"
