"""
VibeSync Similarity Search Sources
쿼리 벡터 -> 유사도 순 후보 곡 (Supabase RPC / 인메모리 인덱스)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from supabase import Client

from .catalog import CatalogIndex, SongCatalog
from .errors import RetrievalError
from .models import Candidate, EmbeddingVector, SourceResult, SourceTag
from .scoring import batch_cosine_similarity

logger = logging.getLogger(__name__)


class SimilaritySearchSource(ABC):
    """유사도 검색 소스 (priority 0이 최우선)"""

    def __init__(
        self,
        name: str,
        priority: int,
        tag: SourceTag,
        threshold: float,
        limit: int
    ):
        self.name = name
        self.priority = priority
        self.tag = tag
        self.threshold = threshold
        self.limit = limit

    @abstractmethod
    async def search(self, vector: EmbeddingVector) -> List[Candidate]:
        """0건 결과는 에러가 아님"""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, priority={self.priority})"


class SupabaseSearchSource(SimilaritySearchSource):
    """
    Supabase(pgvector) RPC 검색

    RPC 시그니처: fn(query_embedding, match_threshold, match_count)
    반환 행: {id, title, artist, similarity}
    """

    def __init__(
        self,
        client: Client,
        rpc_name: str,
        priority: int,
        tag: SourceTag,
        threshold: float,
        limit: int
    ):
        super().__init__(rpc_name, priority, tag, threshold, limit)
        self.client = client
        self.rpc_name = rpc_name

    def _call_rpc(self, params: Dict[str, Any]) -> Any:
        return self.client.rpc(self.rpc_name, params).execute()

    @staticmethod
    def _to_candidate(row: Dict[str, Any], tag: SourceTag) -> Optional[Candidate]:
        if row.get("id") is None:
            return None
        score = row.get("similarity", row.get("similarityScore", 0.0))
        try:
            score = float(score)
        except (TypeError, ValueError):
            score = 0.0
        return Candidate(
            id=row["id"],
            title=str(row.get("title") or "Unknown"),
            artist=str(row.get("artist") or "Unknown"),
            similarity_score=score,
            source_tag=tag,
        )

    async def search(self, vector: EmbeddingVector) -> List[Candidate]:
        params = {
            "query_embedding": list(vector),
            "match_threshold": self.threshold,
            "match_count": self.limit,
        }
        try:
            response = await asyncio.to_thread(self._call_rpc, params)
        except Exception as e:
            logger.error(f"Supabase RPC {self.rpc_name} failed: {e.__class__.__name__}: {e}")
            raise RetrievalError(f"Similarity search failed: {self.rpc_name}") from e

        rows = getattr(response, "data", None) or []
        candidates = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            cand = self._to_candidate(row, self.tag)
            if cand is not None:
                candidates.append(cand)
        return candidates[:self.limit]


class InMemorySearchSource(SimilaritySearchSource):
    """카탈로그 인덱스 코사인 유사도 검색 (데모 모드)"""

    def __init__(
        self,
        name: str,
        catalog: SongCatalog,
        index: CatalogIndex,
        priority: int,
        tag: SourceTag,
        threshold: float,
        limit: int
    ):
        super().__init__(name, priority, tag, threshold, limit)
        self.catalog = catalog
        self.index = index

    async def search(self, vector: EmbeddingVector) -> List[Candidate]:
        query = np.asarray(vector, dtype=np.float32)
        try:
            similarities = batch_cosine_similarity(query, self.index.embeddings)
        except ValueError as e:
            raise RetrievalError(f"In-memory search failed: {e}") from e

        # 동점은 카탈로그 순서 유지
        order = np.argsort(-similarities, kind="stable")

        candidates: List[Candidate] = []
        for idx in order:
            score = float(similarities[idx])
            if score < self.threshold:
                break
            sid = self.index.song_ids[idx]
            entry = self.catalog.songs[sid]
            candidates.append(Candidate(
                id=sid,
                title=entry.title,
                artist=entry.artist,
                similarity_score=score,
                source_tag=self.tag,
            ))
            if len(candidates) >= self.limit:
                break
        return candidates


async def gather_sources(
    sources: Sequence[SimilaritySearchSource],
    vector: EmbeddingVector
) -> List[SourceResult]:
    """
    모든 소스를 동시에 호출하고 우선순위 순으로 결과 반환

    개별 소스 실패는 빈 결과로 대체(로그)하고 나머지 소스에 영향을 주지 않는다.
    모든 소스가 실패하면 RetrievalError.
    """
    outcomes = await asyncio.gather(
        *(source.search(vector) for source in sources),
        return_exceptions=True
    )

    results: List[SourceResult] = []
    for source, outcome in zip(sources, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning(
                f"Source {source.name} failed, contributing no candidates: "
                f"{outcome.__class__.__name__}: {outcome}"
            )
            results.append(SourceResult(
                name=source.name,
                priority=source.priority,
                tag=source.tag,
                failed=True,
            ))
        else:
            results.append(SourceResult(
                name=source.name,
                priority=source.priority,
                tag=source.tag,
                candidates=tuple(outcome),
            ))

    if results and all(r.failed for r in results):
        raise RetrievalError("All similarity search sources failed")

    return sorted(results, key=lambda r: r.priority)
