"""
VibeSync Health Check API
헬스 체크 라우터
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel
from typing import List, Optional

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    engine_version: str
    demo_mode: bool
    curation_provider: Optional[str] = None
    curation_style: str
    failure_policy: str
    sources: List[str]
    redis_connected: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    서버 상태 확인

    - 파이프라인 버전, 활성 provider, 검색 소스
    - Redis 연결 상태 (임베딩 캐시 사용 시)
    """
    state = request.app.state
    config = state.config
    engine = getattr(state, "engine", None)

    redis_cache = getattr(state, "redis_cache", None)
    redis_connected = redis_cache.ping() if redis_cache is not None else False

    return HealthResponse(
        status="ok" if engine is not None else "degraded",
        engine_version=config.ENGINE_VERSION,
        demo_mode=config.DEMO_MODE,
        curation_provider=engine.provider.name if engine is not None else None,
        curation_style=config.CURATION_STYLE,
        failure_policy=config.FAILURE_POLICY,
        sources=[s.name for s in engine.sources] if engine is not None else [],
        redis_connected=redis_connected
    )
