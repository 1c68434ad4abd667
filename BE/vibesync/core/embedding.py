"""
VibeSync Embedding Clients
무드 텍스트 -> 고정 차원 벡터
"""

import asyncio
import hashlib
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import google.generativeai as genai
import numpy as np

from .cache import RedisCache, make_embedding_cache_key
from .errors import EmbeddingError
from .models import EmbeddingVector
from .scoring import to_unit_vector

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _coerce_vector(values: Any) -> EmbeddingVector:
    """백엔드 응답을 불변 벡터로 변환 (비었거나 숫자가 아니면 EmbeddingError)"""
    if not isinstance(values, (list, tuple)) or not values:
        raise EmbeddingError("Embedding backend returned an empty or malformed vector")
    try:
        vector = tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise EmbeddingError(f"Embedding vector contains non-numeric values: {e}") from e
    if not all(math.isfinite(v) for v in vector):
        raise EmbeddingError("Embedding vector contains non-finite values")
    return vector


class EmbeddingClient(ABC):
    """임베딩 백엔드 추상화"""

    model_name: str = "unknown"

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingVector:
        """비어있지 않은 텍스트를 벡터로 변환 (입력 검증은 호출자 책임)"""


class GeminiEmbeddingClient(EmbeddingClient):
    """Google Generative AI 임베딩 (text-embedding-004)"""

    def __init__(self, api_key: str, model_name: str = "models/text-embedding-004"):
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is not set; embedding client is disabled.")
        genai.configure(api_key=api_key)
        self.model_name = model_name

    async def embed(self, text: str) -> EmbeddingVector:
        try:
            # SDK 호출은 동기식이므로 워커 스레드에서 실행
            result = await asyncio.to_thread(
                genai.embed_content,
                model=self.model_name,
                content=text
            )
        except Exception as e:
            logger.error(f"Embedding request failed: {e.__class__.__name__}: {e}")
            raise EmbeddingError(f"Embedding backend unavailable: {e.__class__.__name__}") from e

        values = result.get("embedding") if isinstance(result, dict) else getattr(result, "embedding", None)
        return _coerce_vector(values)


class HashEmbeddingClient(EmbeddingClient):
    """
    결정적 해시 임베딩 (데모 모드, 테스트)

    토큰별 해시 시드 벡터를 더해 정규화하므로 단어가 겹치는 텍스트끼리
    유사도가 높게 나온다.
    """

    def __init__(self, dim: int = 64):
        self.dim = dim
        self.model_name = f"hash-{dim}"

    def _token_vector(self, token: str) -> np.ndarray:
        seed = int.from_bytes(hashlib.sha256(token.encode("utf-8")).digest()[:8], "big")
        rng = np.random.default_rng(seed)
        return rng.standard_normal(self.dim)

    def embed_sync(self, text: str) -> EmbeddingVector:
        tokens = _TOKEN_RE.findall(text.lower()) or [text.lower().strip()]
        total = np.zeros(self.dim, dtype=np.float64)
        for token in tokens:
            total += self._token_vector(token)
        return tuple(float(v) for v in to_unit_vector(total))

    async def embed(self, text: str) -> EmbeddingVector:
        return self.embed_sync(text)


class CachedEmbeddingClient(EmbeddingClient):
    """Redis 캐시 데코레이터 (캐시 장애는 무시하고 원본 호출)"""

    def __init__(self, inner: EmbeddingClient, cache: Optional[RedisCache], ttl_sec: int):
        self.inner = inner
        self.cache = cache
        self.ttl_sec = ttl_sec
        self.model_name = inner.model_name

    async def embed(self, text: str) -> EmbeddingVector:
        if self.cache is None:
            return await self.inner.embed(text)

        key = make_embedding_cache_key(self.model_name, text)
        cached = self.cache.get_json(key)
        if cached is not None:
            try:
                vector = _coerce_vector(cached)
                logger.debug(f"Embedding cache hit: {key}")
                return vector
            except EmbeddingError:
                logger.warning(f"Ignoring malformed cached embedding: {key}")

        vector = await self.inner.embed(text)
        self.cache.set_json(key, list(vector), self.ttl_sec)
        return vector
