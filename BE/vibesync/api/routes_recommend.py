"""
VibeSync Recommendation API
무드 추천 라우터
"""

import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..core.models import DEFAULT_GENRE, MoodQuery
from ..schemas.common import ErrorResponse
from ..schemas.recommend import RecommendRequest, RecommendResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommend"])


@router.post(
    "/recommend",
    response_model=RecommendResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Mood missing"},
        500: {"model": ErrorResponse, "description": "Unexpected failure"},
        502: {"model": ErrorResponse, "description": "Upstream failure (loud policy)"},
        503: {"model": ErrorResponse, "description": "Engine not initialized or provider outage"}
    }
)
async def recommend(request: Request, body: RecommendRequest) -> JSONResponse:
    """
    무드 기반 곡 추천

    - mood: 자유 텍스트 무드 (필수)
    - genre: 선호 장르 (선택, 기본 any)

    상태 코드와 본문은 오케스트레이터의 실패 정책(soft/loud)을 따른다.
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return JSONResponse(
            status_code=503,
            content={"message": "Recommendation engine not initialized", "code": "ENGINE_UNAVAILABLE"}
        )

    query = MoodQuery(mood=body.mood, genre=body.genre or DEFAULT_GENRE)
    result = await engine.handle(query)
    return JSONResponse(status_code=result.status_code, content=result.payload)
