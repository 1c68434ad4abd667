"""
VibeSync Backend Main Application
FastAPI 앱 및 startup/shutdown 이벤트
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.cache import RedisCache
from .core.errors import ValidationError
from .core.pipeline import build_orchestrator
from .core.video import YouTubeVideoResolver
from .api import routes_health, routes_recommend, routes_videos
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 라이프사이클 관리"""
    # Startup
    config = get_settings()
    setup_logging(config.LOG_LEVEL)
    app.state.config = config

    logger.info("=" * 60)
    logger.info("VibeSync Backend Starting...")
    logger.info("=" * 60)
    logger.info(f"Engine Version: {config.ENGINE_VERSION}")
    logger.info(f"Demo Mode: {config.DEMO_MODE}")
    logger.info(f"Curation: provider={config.CURATION_PROVIDER}, style={config.CURATION_STYLE}")

    # Redis 캐시 (임베딩 캐시를 켠 경우에만)
    app.state.redis_cache = None
    if config.EMBEDDING_CACHE_TTL_SEC > 0:
        app.state.redis_cache = RedisCache(config.REDIS_URL)

    # 오케스트레이터 (provider는 여기서 한 번만 선택)
    try:
        app.state.engine = build_orchestrator(config, app.state.redis_cache)
    except RuntimeError as e:
        logger.error(f"Engine not initialized: {e}")
        app.state.engine = None

    app.state.video_resolver = YouTubeVideoResolver(config.YOUTUBE_API_KEY)

    logger.info("=" * 60)
    logger.info("VibeSync Backend Ready!")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("VibeSync Backend Shutting down...")
    await app.state.video_resolver.aclose()


app = FastAPI(
    title="VibeSync API",
    description="무드 기반 음악 추천 API",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """잘못된 요청 본문 -> 400 {message, code} (pydantic 원본 에러는 노출하지 않음)"""
    logger.info(f"Rejected request body on {request.url.path}: {len(exc.errors())} errors")
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"message": "Invalid request body", "code": ValidationError.code}
    )


app.include_router(routes_health.router)
app.include_router(routes_recommend.router)
app.include_router(routes_videos.router)


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "VibeSync API",
        "version": "1.0.0",
        "docs": "/docs"
    }
