"""
VibeSync Pipeline Wiring
설정 -> 임베딩/검색/큐레이션 구성요소 -> 오케스트레이터
"""

import logging
from typing import List, Optional

from supabase import create_client

from .cache import RedisCache
from .catalog import build_catalog_index, load_song_catalog
from .config import Settings
from .curation import build_curation_provider
from .embedding import (
    CachedEmbeddingClient,
    EmbeddingClient,
    GeminiEmbeddingClient,
    HashEmbeddingClient,
)
from .engine import CurationOrchestrator
from .models import Theme
from .search import InMemorySearchSource, SimilaritySearchSource, SupabaseSearchSource

logger = logging.getLogger(__name__)


def _build_demo_sources(config: Settings, embedder: HashEmbeddingClient) -> List[SimilaritySearchSource]:
    catalog = load_song_catalog(config.SONG_CATALOG_PATH, demo_mode=True)
    sources: List[SimilaritySearchSource] = [
        InMemorySearchSource(
            name="demo_lyrics",
            catalog=catalog,
            index=build_catalog_index(catalog, embedder, "lyrics"),
            priority=0,
            tag="primary",
            threshold=config.PRIMARY_THRESHOLD,
            limit=config.PRIMARY_LIMIT,
        )
    ]
    if config.SECONDARY_SOURCE_RPC:
        sources.append(InMemorySearchSource(
            name="demo_general",
            catalog=catalog,
            index=build_catalog_index(catalog, embedder, "general"),
            priority=1,
            tag="secondary",
            threshold=config.SECONDARY_THRESHOLD,
            limit=config.SECONDARY_LIMIT,
        ))
    return sources


def _build_supabase_sources(config: Settings) -> List[SimilaritySearchSource]:
    if not config.SUPABASE_URL or not config.SUPABASE_KEY:
        raise RuntimeError("SUPABASE_URL / SUPABASE_KEY are not set; similarity search is disabled.")

    client = create_client(config.SUPABASE_URL, config.SUPABASE_KEY)
    sources: List[SimilaritySearchSource] = [
        SupabaseSearchSource(
            client=client,
            rpc_name=config.PRIMARY_SOURCE_RPC,
            priority=0,
            tag="primary",
            threshold=config.PRIMARY_THRESHOLD,
            limit=config.PRIMARY_LIMIT,
        )
    ]
    if config.SECONDARY_SOURCE_RPC:
        sources.append(SupabaseSearchSource(
            client=client,
            rpc_name=config.SECONDARY_SOURCE_RPC,
            priority=1,
            tag="secondary",
            threshold=config.SECONDARY_THRESHOLD,
            limit=config.SECONDARY_LIMIT,
        ))
    return sources


def build_orchestrator(
    config: Settings,
    redis_cache: Optional[RedisCache] = None
) -> CurationOrchestrator:
    """
    설정 기반 오케스트레이터 구성

    - DEMO_MODE: 해시 임베딩 + 인메모리 카탈로그 + 데모 큐레이션 (키 불필요)
    - 그 외: Gemini 임베딩 + Supabase RPC + 설정된 LLM provider

    Raises:
        RuntimeError: 필수 키 누락
    """
    embedder: EmbeddingClient
    if config.DEMO_MODE:
        hash_embedder = HashEmbeddingClient(dim=config.DEMO_EMBEDDING_DIM)
        embedder = hash_embedder
        sources = _build_demo_sources(config, hash_embedder)
    else:
        embedder = GeminiEmbeddingClient(config.GEMINI_API_KEY, config.EMBEDDING_MODEL)
        sources = _build_supabase_sources(config)

    if redis_cache is not None and config.EMBEDDING_CACHE_TTL_SEC > 0:
        embedder = CachedEmbeddingClient(embedder, redis_cache, config.EMBEDDING_CACHE_TTL_SEC)

    provider = build_curation_provider(config)

    return CurationOrchestrator(
        embedder=embedder,
        sources=sources,
        provider=provider,
        candidate_cap=config.CANDIDATE_CAP,
        failure_policy=config.FAILURE_POLICY,
        validate_selections=config.VALIDATE_SELECTIONS,
        neutral_theme=Theme(mood_name=config.NEUTRAL_MOOD_NAME, hex_color=config.NEUTRAL_HEX_COLOR),
        link_template=config.LINK_TEMPLATE,
    )
